from menechat.cli import cli

cli()
