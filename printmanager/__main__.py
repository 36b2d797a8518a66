from printmanager.cli import app

app(prog_name="printmanager")
