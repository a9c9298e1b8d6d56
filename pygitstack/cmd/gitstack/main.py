"""CLI entry point."""

import os
import sys
import click
import logging
from typing import Any, Dict, Optional, Tuple
from click import Context

from ... import __version__, setup_logging
from ...commitstack import compute_all, get_current
from ...config import Config, default_config
from ...config.config_parser import parse_config
from ...git import RealGit
from ...githost import GitHubHost, find_github_token
from ...pretty import format_stack_line, print_problems
from ...push import push_stack

# Get module logger
logger = logging.getLogger(__name__)

def check(err: Exception) -> None:
    """Log the error and exit."""
    logger.error(f"{err}")
    sys.exit(1)

class AliasedGroup(click.Group):
    """Command group with support for aliases."""

    def __init__(self, name: Optional[str] = None, commands: Optional[Dict[str, click.Command]] = None, **attrs: Any) -> None:
        """Initialize with aliases map."""
        super().__init__(name, commands, **attrs)
        self.aliases: Dict[str, str] = {}

    def add_alias(self, alias: str, command: str) -> None:
        """Add an alias for a command."""
        self.aliases[alias] = command

    def get_command(self, ctx: Context, cmd_name: str) -> Optional[click.Command]:
        """Get a command by name, supporting aliases."""
        if cmd_name in self.aliases:
            cmd_name = self.aliases[cmd_name]
        return super().get_command(ctx, cmd_name)

@click.group(cls=AliasedGroup)
@click.pass_context
def cli(ctx: Context) -> None:
    """git stack - stacked branches and pull requests on GitHub."""
    ctx.obj = {}

def setup_git(directory: Optional[str] = None) -> Tuple[Config, RealGit]:
    """Setup Git command and config."""
    if directory:
        os.chdir(directory)

    git_cmd = RealGit(default_config())
    try:
        git_cmd.run_cmd("rev-parse --git-dir")
    except Exception as e:
        check(e)

    config = Config(parse_config(git_cmd))
    return config, RealGit(config)

def setup_host(config: Config) -> GitHubHost:
    """Create the GitHub host client."""
    from github import Auth, Github

    token = find_github_token()
    if not token:
        raise ValueError("No GitHub token found. Try one of:\n"
                         "1. Set GITHUB_TOKEN env var\n"
                         "2. Log in with 'gh auth login'")
    return GitHubHost(config, Github(auth=Auth.Token(token)))

directory_option = click.option(
    '-C', '--directory', type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help='Run as if git stack was started in DIRECTORY instead of the current working directory')
verbose_option = click.option(
    '-v', '--verbose', count=True,
    help="Increase verbosity (can be used multiple times for more verbosity)")

@cli.command(name="list", help="List all stacks")
@directory_option
@verbose_option
def list_stacks(directory: Optional[str], verbose: int) -> None:
    """List command."""
    setup_logging(verbose)
    config, git_cmd = setup_git(directory)
    default_branch = config.repo.default_branch

    try:
        current_commit = git_cmd.get_short_commit_hash("HEAD")
        inference = compute_all(git_cmd, default_branch)
    except Exception as e:
        check(e)
        return

    color = sys.stdout.isatty()
    for stack in inference.inferred_stacks:
        click.echo(format_stack_line(stack, stack.is_current(current_commit), color=color))
    print_problems(inference)

@cli.command(name="push", help="Push the stack to the remote and create/update pull requests")
@directory_option
@verbose_option
@click.option('--pretend', is_flag=True, help="Don't actually push branches, just show what would happen")
def push(directory: Optional[str], verbose: int, pretend: bool) -> None:
    """Push command."""
    setup_logging(verbose)
    config, git_cmd = setup_git(directory)
    config.tool.pretend = pretend
    default_branch = config.repo.default_branch

    try:
        host = setup_host(config)
        current_commit = git_cmd.get_short_commit_hash("HEAD")
        inference = compute_all(git_cmd, default_branch)
        stack = get_current(inference.inferred_stacks, current_commit)
        prs = push_stack(stack, default_branch, git_cmd, host,
                         concurrency=config.tool.concurrency)
    except Exception as e:
        check(e)
        return

    for pr in prs:
        click.echo(f"Pushed {pr.source_branch}: {pr.web_url}")

@cli.command(name="version", help="Prints the CLI version")
def version() -> None:
    """Version command."""
    click.echo(__version__)

def main() -> None:
    """Main entry point."""
    cli.add_alias('ls', 'list')
    cli(obj={})

if __name__ == "__main__":
    main()
