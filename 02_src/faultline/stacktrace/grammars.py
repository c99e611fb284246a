"""Line grammars for textual stack traces.

Each matcher takes one line and returns a StackFrame or None. The
``STACK_GRAMMARS`` and ``STACKTRACE_GRAMMARS`` lists give the order in which
the decoder tries them on every line.
"""

import re
from typing import Callable

from ..models import UNKNOWN_FUNCTION, StackFrame

# Chromium based engines (V8): "    at fn (url:line:col)"
CHROME = re.compile(
    r"^\s*at (?:(.*?) ?\()?"
    r"((?:file|https?|blob|chrome-extension|address|native|eval|webpack|<anonymous>|[-a-z]+:|.*bundle|/).*?)"
    r"(?::(\d+))?(?::(\d+))?\)?\s*$",
    re.IGNORECASE,
)

# SpiderMonkey: "fn@url:line:col". ``bundle`` and ``\d+\.js`` cover RAM bundles
# whose file names carry no scheme.
GECKO = re.compile(
    r"^\s*(.*?)(?:\((.*?)\))?(?:^|@)?"
    r"((?:file|https?|blob|chrome|webpack|resource|moz-extension|capacitor).*?:/.*?"
    r"|\[native code\]|[^@]*(?:bundle|\d+\.js)|/[\w\-. /=]+)"
    r"(?::(\d+))?(?::(\d+))?\s*$",
    re.IGNORECASE,
)

# Legacy IE / WinJS: "   at fn (url:line:col)" with a mandatory line number.
WINJS = re.compile(
    r"^\s*at (?:((?:\[object object\])?.+) )?\(?"
    r"((?:file|ms-appx|https?|webpack|blob):.*?):(\d+)(?::(\d+))?\)?\s*$",
    re.IGNORECASE,
)

GECKO_EVAL = re.compile(r"(\S+) line (\d+)(?: > eval line \d+)* > eval", re.IGNORECASE)
CHROME_EVAL = re.compile(r"\((\S*)(?::(\d+))(?::(\d+))\)")

# Legacy Opera ``stacktrace`` property, one frame per pair of lines.
OPERA_OLDER = re.compile(
    r" line (\d+).*script (?:in )?(\S+)(?:: in function (\S+))?$", re.IGNORECASE
)
OPERA_NEWER = re.compile(
    r" line (\d+), column (\d+)\s*"
    r"(?:in (?:<anonymous function: ([^>]+)>|([^)]+))\((.*)\))? in (.*):\s*$",
    re.IGNORECASE,
)

SAFARI_EXTENSION = "safari-extension"
SAFARI_WEB_EXTENSION = "safari-web-extension"

StackLineMatcher = Callable[[str, int, int | None], StackFrame | None]
StacktraceLineMatcher = Callable[[str], StackFrame | None]


def _to_int(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def extract_safari_extension_details(func: str, url: str) -> tuple[str, str]:
    """Rewrite frames produced by Safari (web) extensions.

    Such frames lack the usual header and land in the wrong capture groups:
    the function keeps only its part before ``@`` and the url gets the
    extension kind as a prefix.
    """
    is_safari_extension = SAFARI_EXTENSION in func
    is_safari_web_extension = SAFARI_WEB_EXTENSION in func

    if not (is_safari_extension or is_safari_web_extension):
        return func, url

    func = func.split("@")[0] if "@" in func else UNKNOWN_FUNCTION
    prefix = SAFARI_EXTENSION if is_safari_extension else SAFARI_WEB_EXTENSION
    return func, f"{prefix}:{url}"


def match_chrome(line: str, index: int = 0, column_number: int | None = None) -> StackFrame | None:
    """V8 grammar, including the eval wrapper correction."""
    parts = CHROME.match(line)
    if not parts:
        return None

    func, url, lineno, colno = parts.groups()
    is_native = bool(url) and url.startswith("native")
    is_eval = bool(url) and url.startswith("eval")
    if is_eval:
        submatch = CHROME_EVAL.search(url)
        if submatch:
            # Use the location of the eval call, not the one inside the eval'd code
            url, lineno, colno = submatch.groups()

    if url and url.startswith("address at "):
        url = url[len("address at "):]

    func, url = extract_safari_extension_details(func or UNKNOWN_FUNCTION, url)

    return StackFrame(
        url=url,
        func=func,
        args=[url] if is_native else [],
        line=_to_int(lineno),
        column=_to_int(colno),
    )


def match_winjs(line: str, index: int = 0, column_number: int | None = None) -> StackFrame | None:
    """Legacy IE grammar."""
    parts = WINJS.match(line)
    if not parts:
        return None

    func, url, lineno, colno = parts.groups()
    return StackFrame(
        url=url,
        func=func or UNKNOWN_FUNCTION,
        args=[],
        line=_to_int(lineno),
        column=_to_int(colno),
    )


def match_gecko(line: str, index: int = 0, column_number: int | None = None) -> StackFrame | None:
    """SpiderMonkey grammar, including the eval wrapper correction.

    SpiderMonkey reports the column of the top frame only through the
    0-based ``columnNumber`` property of the error.
    """
    parts = GECKO.match(line)
    if not parts:
        return None

    func, args, url, lineno, colno = parts.groups()
    is_eval = bool(url) and " > eval" in url
    submatch = GECKO_EVAL.search(url) if is_eval else None
    if submatch:
        func = func or "eval"
        url, lineno = submatch.groups()
        colno = None  # no column inside eval
    elif index == 0 and not colno and column_number is not None:
        colno = column_number + 1

    func, url = extract_safari_extension_details(func or UNKNOWN_FUNCTION, url)

    return StackFrame(
        url=url,
        func=func,
        args=args.split(",") if args else [],
        line=_to_int(lineno),
        column=_to_int(colno),
    )


def match_opera_older(line: str) -> StackFrame | None:
    """Opera 10 ``stacktrace`` grammar."""
    parts = OPERA_OLDER.search(line)
    if not parts:
        return None

    lineno, url, func = parts.groups()
    return StackFrame(url=url, func=func, args=[], line=_to_int(lineno), column=None)


def match_opera_newer(line: str) -> StackFrame | None:
    """Opera 11 ``stacktrace`` grammar."""
    parts = OPERA_NEWER.search(line)
    if not parts:
        return None

    lineno, colno, anonymous_func, func, args, url = parts.groups()
    return StackFrame(
        url=url,
        func=anonymous_func or func,
        args=args.split(",") if args else [],
        line=_to_int(lineno),
        column=_to_int(colno),
    )


# Order matters: the first grammar matching a line produces its frame.
STACK_GRAMMARS: list[StackLineMatcher] = [match_chrome, match_winjs, match_gecko]
STACKTRACE_GRAMMARS: list[StacktraceLineMatcher] = [match_opera_older, match_opera_newer]
