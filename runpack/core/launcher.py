from __future__ import annotations

import pathlib
import shlex

import jinja2

from runpack.core.errors import LauncherError
from runpack.core.platform import OSFamily


POSIX_TEMPLATE = """\
#!/bin/sh
DIR="$(cd "$(dirname "$0")" && pwd)"
exec "$DIR/runtime/bin/java"{% for opt in jvm_options %} {{ opt | shquote }}{% endfor %} -jar "$DIR/app/{{ artifact }}" "$@"
"""

WINDOWS_TEMPLATE = """\
@echo off
set DIR=%~dp0
"%DIR%runtime\\bin\\java.exe"{% for opt in jvm_options %} {{ opt }}{% endfor %} -jar "%DIR%app\\{{ artifact }}" %*
pause
"""

# quoting or expansion characters in either shell
UNSAFE_NAME_CHARS = frozenset("\"$`\\%!\r\n")

TEMPLATES = {
    OSFamily.POSIX: ("run.sh", POSIX_TEMPLATE),
    OSFamily.WINDOWS: ("run.bat", WINDOWS_TEMPLATE),
}


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(loader=jinja2.BaseLoader(), keep_trailing_newline=True)
    env.filters["shquote"] = shlex.quote
    return env


def check_artifact_name(artifact_name: str) -> None:
    if unsafe := sorted(UNSAFE_NAME_CHARS.intersection(artifact_name)):
        raise LauncherError(f"artifact name {artifact_name!r} contains unsupported characters: {unsafe}")


def render_launcher(os_family: OSFamily, artifact_name: str, jvm_options: tuple[str, ...] = ()) -> str:
    """
    Render a launch script running the bundled runtime against the bundled
    artifact, all paths are relative to the script directory

    :param os_family: family of the target OS
    :type os_family: OSFamily
    :param artifact_name: application archive file name (inside `app/`)
    :type artifact_name: str
    :param jvm_options: extra runtime options
    :type jvm_options: tuple[str, ...]
    :return: script content
    :raises LauncherError: artifact name would be interpreted by the shell
    :rtype: str
    """
    check_artifact_name(artifact_name)

    _, template = TEMPLATES[OSFamily(os_family)]
    tmpl = _environment().from_string(template)
    return tmpl.render(artifact=artifact_name, jvm_options=jvm_options)


def write_launcher(
    dist_dir: pathlib.Path,
    os_family: OSFamily,
    artifact_name: str,
    jvm_options: tuple[str, ...] = (),
) -> pathlib.Path:
    name, _ = TEMPLATES[OSFamily(os_family)]
    script = dist_dir.joinpath(name)
    content = render_launcher(os_family, artifact_name, jvm_options)

    if os_family == OSFamily.WINDOWS:
        with open(script, "w", newline="\r\n") as file:
            file.write(content)
    else:
        script.write_text(content)
        script.chmod(0o755)

    return script
