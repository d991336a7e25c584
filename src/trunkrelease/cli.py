# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""CLI entry point for trunkrelease.

Constructs backend instances and injects them into the release
orchestrator.

Subcommands::

    trunkrelease release    Plan and cut the next release
    trunkrelease plan       Preview the next release (no side effects)
    trunkrelease changelog  Render the next entry, or rebuild the file
    trunkrelease version    Show current -> next version
    trunkrelease config     Validate and show trunkrelease.toml
    trunkrelease init       Write a default trunkrelease.toml
    trunkrelease explain    Explain an error code

Exit codes::

    0    success
    1    error
    2    usage error
    3    no releasable changes
    130  interrupted

Usage::

    # Preview the next release:
    trunkrelease plan --format json

    # Cut it:
    trunkrelease release

    # Re-publish the tag at HEAD after a failed run:
    trunkrelease release --force

    # Explain an error:
    trunkrelease explain TR-FORCE-NOT-AT-TAG
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from rich_argparse import RichHelpFormatter

from trunkrelease import __version__
from trunkrelease.backends.forge import Forge, GitHubAPIBackend
from trunkrelease.backends.vcs import VCS, GitCLIBackend
from trunkrelease.backends.vcs.git import parse_remote_url
from trunkrelease.changelog import write_changelog
from trunkrelease.config import CONFIG_FILENAME, ReleaseConfig, config_to_dict, default_config_text, load_config
from trunkrelease.errors import E, NoReleasableCommits, TrunkReleaseError, explain, render_error
from trunkrelease.logging import configure_logging, get_logger
from trunkrelease.release import ReleasePlan, ReleaseResult, ReleaseStrategy

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_NO_RELEASE = 3
EXIT_INTERRUPTED = 130


def _find_repo_root() -> Path:
    """Walk up from CWD to the directory holding ``trunkrelease.toml`` or ``.git``."""
    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        if (parent / CONFIG_FILENAME).is_file() or (parent / '.git').exists():
            return parent
    return cwd


def _repo_root(args: argparse.Namespace) -> Path:
    return Path(args.root).resolve() if args.root else _find_repo_root()


def _create_backends(root: Path) -> tuple[VCS, Forge | None]:
    """Build the git backend and, when the remote is recognizable, the GitHub backend."""
    vcs = GitCLIBackend(root)
    try:
        host, owner, repo = parse_remote_url(vcs.remote_url())
    except TrunkReleaseError as exc:
        logger.warning('forge_unavailable', reason=exc.message)
        return vcs, None
    return vcs, GitHubAPIBackend(owner, repo, host=host)


def _strategy(root: Path, config: ReleaseConfig) -> tuple[ReleaseStrategy, Forge | None]:
    vcs, forge = _create_backends(root)
    return ReleaseStrategy(config, vcs, forge, root=root), forge


def _require_forge(forge: Forge | None) -> None:
    """Fail before any side effect when releases cannot be created."""
    if forge is None:
        raise TrunkReleaseError(
            code=E.FORGE_UNAVAILABLE,
            message='No GitHub repository found for the origin remote.',
            hint='Set origin to a GitHub URL, or use --dry-run.',
        )
    if isinstance(forge, GitHubAPIBackend) and not forge.has_token:
        raise TrunkReleaseError(
            code=E.FORGE_UNAVAILABLE,
            message='GitHub API token required for release operations.',
            hint='Set GITHUB_TOKEN (or GH_TOKEN), or use --dry-run.',
        )


def _print_result(result: ReleaseResult, fmt: str) -> None:
    if fmt == 'json':
        print(result.to_json())  # noqa: T201 - CLI output
        return
    current = result.current_version or '(none)'
    prefix = '[dry-run] ' if result.dry_run else ''
    print(f'{prefix}{current} -> {result.next_version} ({result.bump})')  # noqa: T201 - CLI output
    print(f'  tag:      {result.tag}')  # noqa: T201 - CLI output
    print(f'  commits:  {result.commit_count}')  # noqa: T201 - CLI output
    if result.floating_tag:
        print(f'  floating: {result.floating_tag}')  # noqa: T201 - CLI output
    if result.release_url:
        print(f'  release:  {result.release_url}')  # noqa: T201 - CLI output
    if result.steps:
        print(f'  steps:    {", ".join(result.steps)}')  # noqa: T201 - CLI output


def _cmd_release(args: argparse.Namespace) -> int:
    """Handle the ``release`` subcommand."""
    root = _repo_root(args)
    strategy, forge = _strategy(root, load_config(root))
    plan = strategy.plan(force=args.force)
    if not args.dry_run:
        _require_forge(forge)
    result = strategy.execute(plan, dry_run=args.dry_run)
    _print_result(result, args.format)
    return EXIT_OK


def _cmd_plan(args: argparse.Namespace) -> int:
    """Handle the ``plan`` subcommand."""
    root = _repo_root(args)
    strategy, _ = _strategy(root, load_config(root))
    plan = strategy.plan()
    result = ReleaseResult.from_plan(plan, dry_run=True)
    if args.format == 'json':
        data = result.as_dict()
        data['changelog'] = plan.changelog_entry
        print(json.dumps(data, indent=2))  # noqa: T201 - CLI output
        return EXIT_OK
    _print_result(result, 'human')
    print()  # noqa: T201 - CLI output
    print(plan.changelog_entry)  # noqa: T201 - CLI output
    return EXIT_OK


def _cmd_changelog(args: argparse.Namespace) -> int:
    """Handle the ``changelog`` subcommand."""
    root = _repo_root(args)
    config = load_config(root)
    strategy, _ = _strategy(root, config)
    changelog_path = root / config.changelog.file

    if args.regenerate:
        text = strategy.regenerate_changelog()
        if args.write:
            changelog_path.write_text(text, encoding='utf-8')
            logger.info('changelog_written', path=str(changelog_path))
        else:
            print(text, end='')  # noqa: T201 - CLI output
        return EXIT_OK

    plan: ReleasePlan = strategy.plan()
    if args.write:
        write_changelog(changelog_path, plan.changelog_entry)
    else:
        print(plan.changelog_entry)  # noqa: T201 - CLI output
    return EXIT_OK


def _cmd_version(args: argparse.Namespace) -> int:
    """Handle the ``version`` subcommand."""
    root = _repo_root(args)
    strategy, _ = _strategy(root, load_config(root))
    plan = strategy.plan()
    if args.short:
        print(plan.next_version)  # noqa: T201 - CLI output
    else:
        current = plan.current_version or '(none)'
        print(f'{current} -> {plan.next_version} ({plan.bump})')  # noqa: T201 - CLI output
    return EXIT_OK


def _cmd_config(args: argparse.Namespace) -> int:
    """Handle the ``config`` subcommand."""
    root = _repo_root(args)
    config = load_config(root)
    if args.resolved:
        print(json.dumps(config_to_dict(config), indent=2))  # noqa: T201 - CLI output
        return EXIT_OK
    source = config.config_path or f'defaults ({CONFIG_FILENAME} not found)'
    print(f'OK: {source}')  # noqa: T201 - CLI output
    return EXIT_OK


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the ``init`` subcommand."""
    root = _repo_root(args)
    config_path = root / CONFIG_FILENAME
    if config_path.exists() and not args.force:
        raise TrunkReleaseError(
            code=E.CONFIG_EXISTS,
            message=f'{config_path} already exists',
            hint='Use --force to overwrite it.',
        )
    config_path.write_text(default_config_text(), encoding='utf-8')
    print(f'Wrote {config_path}')  # noqa: T201 - CLI output
    return EXIT_OK


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return EXIT_ERROR
    print(result)  # noqa: T201 - CLI output
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='trunkrelease',
        description='Semantic releases for trunk-based repositories.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--root',
        metavar='PATH',
        default=None,
        help='Repository root. Defaults to the nearest directory with trunkrelease.toml or .git.',
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('--verbose', '-v', action='store_true', help='Debug logging (every git call).')
    verbosity.add_argument('--quiet', '-q', action='store_true', help='Only warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Log as JSON lines on stderr.')

    subparsers = parser.add_subparsers(dest='command')

    release_parser = subparsers.add_parser(
        'release',
        help='Plan and cut the next release.',
        formatter_class=RichHelpFormatter,
    )
    release_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report what would happen without changing anything.',
    )
    release_parser.add_argument(
        '--force',
        action='store_true',
        help='Re-publish the latest tag (HEAD must be at it).',
    )
    release_parser.add_argument(
        '--format',
        choices=['human', 'json'],
        default='human',
        help='Output format (default: human).',
    )

    plan_parser = subparsers.add_parser(
        'plan',
        help='Preview the next release.',
        formatter_class=RichHelpFormatter,
    )
    plan_parser.add_argument(
        '--format',
        choices=['human', 'json'],
        default='human',
        help='Output format (default: human).',
    )

    changelog_parser = subparsers.add_parser(
        'changelog',
        help='Render the next changelog entry.',
        formatter_class=RichHelpFormatter,
    )
    changelog_parser.add_argument(
        '--write',
        action='store_true',
        help='Write to the changelog file instead of stdout.',
    )
    changelog_parser.add_argument(
        '--regenerate',
        action='store_true',
        help='Rebuild the whole changelog from every release tag.',
    )

    version_parser = subparsers.add_parser(
        'version',
        help='Show current -> next version.',
        formatter_class=RichHelpFormatter,
    )
    version_parser.add_argument(
        '--short',
        action='store_true',
        help='Print only the next version.',
    )

    config_parser = subparsers.add_parser(
        'config',
        help='Validate and show the configuration.',
        formatter_class=RichHelpFormatter,
    )
    config_parser.add_argument(
        '--resolved',
        action='store_true',
        help='Print the resolved configuration as JSON.',
    )

    init_parser = subparsers.add_parser(
        'init',
        help=f'Write a default {CONFIG_FILENAME}.',
        formatter_class=RichHelpFormatter,
    )
    init_parser.add_argument(
        '--force',
        action='store_true',
        help='Overwrite an existing file.',
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument('code', help='Error code (e.g. TR-FORCE-NOT-AT-TAG).')

    return parser


_COMMANDS = {
    'release': _cmd_release,
    'plan': _cmd_plan,
    'changelog': _cmd_changelog,
    'version': _cmd_version,
    'config': _cmd_config,
    'init': _cmd_init,
    'explain': _cmd_explain,
}


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Arguments without the program name; defaults to ``sys.argv[1:]``.

    Returns:
        Exit code (see the module docstring).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    handler = _COMMANDS.get(args.command or '')
    if handler is None:
        parser.print_help()
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return EXIT_USAGE

    try:
        return handler(args)
    except NoReleasableCommits as exc:
        logger.info('no_release', reason=exc.message)
        print(exc.message, file=sys.stderr)  # noqa: T201 - CLI output
        return EXIT_NO_RELEASE
    except TrunkReleaseError as exc:
        render_error(exc)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info('interrupted')
        return EXIT_INTERRUPTED


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
