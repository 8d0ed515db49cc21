from mdrrmo.cli.main import app

app(prog_name="mdrrmo")
