# lampstack/release.py
# -*- coding: utf-8 -*-
"""
Release management for the installer project itself: version tags, release
notes and the archives uploaded to a GitHub release.
"""

import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import click

from lampstack.common.command_utils import run_command
from lampstack.setup import config as static_config

VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")
REPOSITORY_URL = "https://github.com/rifrocket/Lamp-Lemp-Server-Installer"
RAW_URL = "https://raw.githubusercontent.com/rifrocket/Lamp-Lemp-Server-Installer"
ARCHIVE_PREFIX = "lamp-lemp-installer"
RELEASE_FILES = (
    "README.md",
    "VERSION",
    "pyproject.toml",
    "config.yaml",
    "install.py",
    "lampstack",
)


def is_valid_version(version: str) -> bool:
    return bool(VERSION_PATTERN.match(version))


def git(
    args: List[str], project_dir: Path, check: bool = True
) -> subprocess.CompletedProcess:
    """Run ``git`` with ``args`` inside ``project_dir``, capturing its output."""
    return run_command(
        ["git", *args],
        None,
        check=check,
        capture_output=True,
        cwd=str(project_dir),
    )


def is_git_repository(project_dir: Path) -> bool:
    return git(["rev-parse", "--git-dir"], project_dir, check=False).returncode == 0


def is_working_tree_clean(project_dir: Path) -> bool:
    return (
        git(["diff-index", "--quiet", "HEAD", "--"], project_dir, check=False).returncode
        == 0
    )


def write_version_file(version: str, project_dir: Path) -> Path:
    version_file = project_dir / static_config.VERSION_FILE.name
    version_file.write_text(f"{version}\n", encoding="utf-8")
    return version_file


def create_tag(
    version: str,
    message: str,
    project_dir: Path,
    remote: str = "origin",
    branch: str = "main",
) -> None:
    """
    Bump the VERSION marker, commit it, create the annotated tag ``v<version>``
    and push both the branch and the tag.

    Raises:
        subprocess.CalledProcessError: If a git command fails.
    """
    version_file = write_version_file(version, project_dir)
    git(["add", version_file.name], project_dir)
    # Nothing to commit when VERSION already holds this version.
    git(["commit", "-m", f"Bump version to {version}"], project_dir, check=False)
    git(["tag", "-a", f"v{version}", "-m", message], project_dir)
    git(["push", remote, branch], project_dir)
    git(["push", remote, f"v{version}"], project_dir)


def list_tags(project_dir: Path, limit: int = 10) -> List[str]:
    """The newest ``limit`` tags, highest version first."""
    result = git(["tag", "-l", "--sort=-version:refname"], project_dir)
    return [line for line in result.stdout.splitlines() if line.strip()][:limit]


def previous_tag(project_dir: Path) -> Optional[str]:
    result = git(["describe", "--tags", "--abbrev=0", "HEAD^"], project_dir, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def generate_release_notes(version: str, project_dir: Path) -> str:
    """Markdown release notes: commits since the previous tag and install steps."""
    lines = [f"## Release v{version}", "", "### Changes"]
    since = previous_tag(project_dir)
    if since:
        log = git(["log", "--oneline", "--no-merges", f"{since}..HEAD"], project_dir)
        lines += ["", f"**Commits since {since}:**"]
        lines += [f"- {commit}" for commit in log.stdout.splitlines() if commit.strip()]
    else:
        lines.append("- Initial release")

    lines += [
        "",
        "### Installation",
        "",
        "```bash",
        f"pip install {REPOSITORY_URL}/archive/refs/tags/v{version}.tar.gz",
        "sudo lamp-lemp-installer --lamp --php-version=8.2",
        "```",
        "",
        "**Without installing the package:**",
        "```bash",
        f"wget -O /tmp/{ARCHIVE_PREFIX}.tar.gz {REPOSITORY_URL}/releases/download/v{version}/{ARCHIVE_PREFIX}-v{version}.tar.gz",
        f"tar xzf /tmp/{ARCHIVE_PREFIX}.tar.gz -C /tmp",
        f"sudo python3 /tmp/release-v{version}/install.py",
        "```",
    ]
    return "\n".join(lines) + "\n"


def build_release_package(version: str, project_dir: Path) -> Dict[str, Path]:
    """
    Build ``release-v<version>/`` with the release files and the release
    notes, then the ``.tar.gz`` and ``.zip`` archives of that directory.

    Missing release files are skipped with a warning.

    Returns:
        The paths created, keyed by "directory", "tarball", "zip" and "notes".
    """
    release_name = f"release-v{version}"
    release_dir = project_dir / release_name
    release_dir.mkdir(parents=True, exist_ok=True)

    for name in RELEASE_FILES:
        source = project_dir / name
        target = release_dir / name
        if source.is_dir():
            if target.exists():
                shutil.rmtree(target)
            shutil.copytree(
                source, target, ignore=shutil.ignore_patterns("__pycache__", "*.pyc")
            )
        elif source.is_file():
            shutil.copy2(source, target)
        else:
            click.secho(f"Warning: {name} not found, not packaged.", fg="yellow")

    notes = release_dir / "RELEASE_NOTES.md"
    notes.write_text(generate_release_notes(version, project_dir), encoding="utf-8")

    archive_base = str(project_dir / f"{ARCHIVE_PREFIX}-v{version}")
    tarball = shutil.make_archive(
        archive_base, "gztar", root_dir=str(project_dir), base_dir=release_name
    )
    zip_file = shutil.make_archive(
        archive_base, "zip", root_dir=str(project_dir), base_dir=release_name
    )
    return {
        "directory": release_dir,
        "tarball": Path(tarball),
        "zip": Path(zip_file),
        "notes": notes,
    }


def _current_version(project_dir: Path) -> str:
    return static_config.read_version_marker(project_dir / static_config.VERSION_FILE.name)


@click.group()
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Root of the installer's git checkout.",
)
@click.pass_context
def cli(ctx, project_dir):
    """
    Release management for the LAMP/LEMP installer.

    Creates version tags, prints release notes and builds the archives that
    are attached to a GitHub release.
    """
    ctx.ensure_object(dict)
    ctx.obj["project_dir"] = project_dir
    if not is_git_repository(project_dir):
        raise click.ClickException("Not in a git repository")


@cli.command(name="tag")
@click.argument("version")
@click.option("-m", "--message", required=True, help="Annotation for the release tag.")
@click.option("--remote", default="origin", show_default=True, help="Remote to push to.")
@click.option("--branch", default="main", show_default=True, help="Branch to push.")
@click.pass_context
def tag_command(ctx, version, message, remote, branch):
    """
    Creates and pushes the release tag v<VERSION>.

    VERSION must have the form X.Y.Z. The working tree must be clean; the
    VERSION file is updated and committed before the tag is created.
    """
    project_dir = ctx.obj["project_dir"]
    if not is_valid_version(version):
        raise click.BadParameter(
            "Version must be in format X.Y.Z (e.g., 2.1.0)", param_hint="VERSION"
        )
    if not is_working_tree_clean(project_dir):
        raise click.ClickException(
            "Working directory has uncommitted changes. "
            "Please commit or stash your changes before creating a release."
        )
    click.echo(f"Creating tag v{version}...")
    try:
        create_tag(version, message, project_dir, remote=remote, branch=branch)
    except subprocess.CalledProcessError as e:
        raise click.ClickException(f"git {' '.join(e.cmd[1:])} failed: {e.stderr or e}")
    click.secho(f"Tag v{version} created and pushed successfully!", fg="green")


@cli.command(name="list")
@click.option("--limit", default=10, show_default=True, help="Number of tags to show.")
@click.pass_context
def list_command(ctx, limit):
    """Lists the newest release tags."""
    click.echo("Existing tags:")
    for tag in list_tags(ctx.obj["project_dir"], limit=limit):
        click.echo(tag)


@cli.command(name="notes")
@click.option("--version", "version", default=None, help="Version to describe (default: VERSION file).")
@click.pass_context
def notes_command(ctx, version):
    """Prints the release notes for the current version."""
    project_dir = ctx.obj["project_dir"]
    version = version or _current_version(project_dir)
    click.echo(generate_release_notes(version, project_dir), nl=False)


@cli.command(name="package")
@click.pass_context
def package_command(ctx):
    """
    Builds the GitHub release package for the current version: the
    release-v<version> directory, .tar.gz and .zip archives and
    RELEASE_NOTES.md.
    """
    project_dir = ctx.obj["project_dir"]
    version = _current_version(project_dir)
    click.echo(f"Preparing GitHub release package for v{version}...")
    paths = build_release_package(version, project_dir)
    click.secho("Release package created:", fg="green")
    click.echo(f"  - Directory: {paths['directory'].name}/")
    click.echo(f"  - Archive: {paths['tarball'].name}")
    click.echo(f"  - Archive: {paths['zip'].name}")
    click.echo(f"  - Release notes: {paths['directory'].name}/{paths['notes'].name}")
    click.echo("")
    click.echo("Next steps:")
    click.echo("1. Go to GitHub and create a new release")
    click.echo("2. Upload the archives as release assets")
    click.echo("3. Copy the release notes to the GitHub release description")


if __name__ == "__main__":
    cli()
