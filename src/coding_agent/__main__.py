from coding_agent.cli.main import cli

cli()
