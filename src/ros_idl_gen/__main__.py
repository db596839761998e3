from ros_idl_gen.cli import app

app()
