"""
Main CLI application for lockguard.

Defines the Typer application structure and command routing,
keeping the CLI layer thin.
"""
import typer

from lockguard.cli.commands.scan import scan_command


# Initialize Typer app
app = typer.Typer(help="lockguard - scan npm dependencies against a threat database")

# Register commands
app.command("scan", help="Scan a project's dependencies for known malicious packages.")(scan_command)


# Add callback to make scan the default command when no subcommand is specified
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """lockguard - scan npm dependencies against a threat database.

    Run 'lockguard scan [PROJECT_DIR]' to check direct dependencies, or add
    '--deep' to include everything resolved in the lock file.
    """
    if ctx.invoked_subcommand is None:
        # Default to scan command when no subcommand is specified
        ctx.invoke(
            scan_command,
            project_dir=".",
            config_path=None,
            deep=None,
            lock_file=None,
            database=None,
            ignore=None,
            severity=None,
            strict=False,
            output=None,
            json_output=False,
            verbose=False,
        )
