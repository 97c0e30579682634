"""Command line interface: root typer app, dispatcher tree and rendering."""
