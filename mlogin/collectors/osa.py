"""System Events login items through JavaScript for Automation (osascript)."""

import json
from typing import Mapping, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from mlogin.errors import ExternalToolError, ParseError
from mlogin.models import LoginItem
from mlogin.util.process import run_tool
from mlogin.util.shell import Runner, run

OSASCRIPT = "osascript"

# Scripts read their inputs from environment variables so that paths and
# names never need to be escaped into the script text. Results are written to
# stdout as UTF-8 JSON; osascript's own echo of the last value is not used.
_EMIT_JS = """
ObjC.import('Foundation');
function emit(value) {
  const data = $(JSON.stringify(value) + '\\n').dataUsingEncoding($.NSUTF8StringEncoding);
  $.NSFileHandle.fileHandleWithStandardOutput.writeData(data);
}
"""

LIST_LOGIN_ITEMS_JS = _EMIT_JS + """
const se = Application('System Events');
const out = se.loginItems().map((item) => ({
  name: item.name(),
  path: item.path(),
  hidden: item.hidden()
}));
emit(out);
"""

ADD_LOGIN_ITEM_JS = _EMIT_JS + """
ObjC.import('stdlib');
const se = Application('System Events');
const path = $.getenv('MLOGIN_ADD_PATH');
const hidden = $.getenv('MLOGIN_ADD_HIDDEN') === '1';
const existing = se.loginItems.whose({path: path})();
for (const item of existing) {
  item.delete();
}
se.loginItems.push(se.LoginItem({path: path, hidden: hidden}));
emit({path: path});
"""

REMOVE_LOGIN_ITEMS_JS = _EMIT_JS + """
ObjC.import('stdlib');
function env(key) {
  try { return $.getenv(key); } catch (e) { return ''; }
}
const se = Application('System Events');
const name = env('MLOGIN_REMOVE_NAME');
const path = env('MLOGIN_REMOVE_PATH');
let removed = 0;
for (const item of se.loginItems()) {
  const matchesName = name ? item.name() === name : false;
  const matchesPath = path ? item.path() === path : false;
  if (matchesName || matchesPath) {
    item.delete();
    removed += 1;
  }
}
emit({removed: removed});
"""


class RemoveResult(BaseModel):
    """Shape of the removal script's output."""

    removed: int


_LOGIN_ITEMS = TypeAdapter(list[LoginItem])


def run_jxa(
    script: str,
    what: str,
    env: Optional[Mapping[str, str]] = None,
    runner: Runner = run,
    timeout: Optional[int] = None,
) -> str:
    """
    Run a JXA script and return its (non-empty) stdout.

    Scripts report through emit(), which writes UTF-8 JSON to stdout.

    Raises:
        ExternalToolError: If osascript is missing, fails, or prints nothing
    """
    result = run_tool(
        [OSASCRIPT, "-l", "JavaScript", "-e", script],
        what,
        runner=runner,
        env=env,
        timeout=timeout
    )
    if not result.out:
        raise ExternalToolError(f"{what}: osascript returned no output")
    return result.out


def parse_login_items(output: str) -> list[LoginItem]:
    """
    Parse the JSON array printed by LIST_LOGIN_ITEMS_JS.

    Raises:
        ParseError: If the output is not JSON or items do not match the schema
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ParseError(f"parse login items: {e}") from e
    try:
        return _LOGIN_ITEMS.validate_python(data)
    except ValidationError as e:
        raise ParseError(f"unexpected login item data: {e}") from e


def parse_remove_result(output: str) -> int:
    """Number of login items the removal script deleted."""
    try:
        return RemoveResult.model_validate_json(output).removed
    except ValidationError as e:
        raise ParseError(f"unexpected remove result {output!r}") from e
