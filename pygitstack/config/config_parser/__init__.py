"""Config parser logic."""

from typing import Dict, Optional, Tuple, Any
import logging
import yaml

from ...typing import GitInterface

# Get module logger
logger = logging.getLogger(__name__)

CONFIG_FILE = '.gitstack.yaml'

RepoConfig = Dict[str, Any]  # Use Any since yaml can return various types
Config = Dict[str, RepoConfig]

def parse_remote_url(remote_url: str) -> Optional[Tuple[str, str]]:
    """Split a GitHub remote URL into (owner, name)."""
    remote_url = remote_url.strip()
    if not remote_url:
        return None
    if "://" in remote_url:
        # HTTPS format: https://github.com/owner/repo.git
        repo_part = remote_url.split("://", 1)[1].split("/", 1)[-1]
    elif "@" in remote_url:
        # SSH format: git@github.com:owner/repo.git
        repo_part = remote_url.split(":")[-1]
    else:
        return None

    if repo_part.endswith(".git"):
        repo_part = repo_part[:-len(".git")]
    parts = repo_part.strip("/").split("/")
    if len(parts) < 2:
        return None
    return parts[-2], parts[-1]

def parse_config(git_cmd: GitInterface, path: str = CONFIG_FILE) -> Config:
    """Parse config from defaults, the repository config file and git."""
    config: Config = {
        'repo': {
            'remote': 'origin',
            'default_branch': None,
            'github_host': 'github.com',
        },
        'user': {},
        'tool': {
            'concurrency': 4,
            'pretend': False,
        }
    }

    try:
        with open(path, 'r') as f:
            logger.info(f"Found {path}, loading...")
            file_config = yaml.safe_load(f)
            logger.debug(f"Config from {path}: {file_config}")
            if file_config:
                for section in ('repo', 'user', 'tool'):
                    if isinstance(file_config.get(section), dict):
                        config[section].update(file_config[section])
    except FileNotFoundError:
        logger.debug(f"No {path} found, using defaults")

    remote = config['repo']['remote']

    if not config['repo'].get('default_branch'):
        config['repo']['default_branch'] = detect_default_branch(git_cmd, remote)

    # Try to extract repo owner/name from git remote if not in config
    if not config['repo'].get('github_repo_owner') or not config['repo'].get('github_repo_name'):
        try:
            owner_name = parse_remote_url(git_cmd.run_cmd(f"remote get-url {remote}"))
        except Exception as e:
            logger.error(f"Failed to parse git remote: {e}")
            owner_name = None
        if owner_name:
            owner, name = owner_name
            if not config['repo'].get('github_repo_owner'):
                config['repo']['github_repo_owner'] = owner
            if not config['repo'].get('github_repo_name'):
                config['repo']['github_repo_name'] = name

    return config

def detect_default_branch(git_cmd: GitInterface, remote: str) -> str:
    """Find the default branch from the remote HEAD, falling back to main."""
    try:
        ref = git_cmd.run_cmd(f"symbolic-ref --short refs/remotes/{remote}/HEAD").strip()
    except Exception as e:
        logger.debug(f"No remote HEAD for {remote}: {e}")
        return 'main'
    prefix = f"{remote}/"
    if ref.startswith(prefix):
        return ref[len(prefix):]
    return ref or 'main'
