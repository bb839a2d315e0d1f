from ._api import afetch_and_find_path, fetch_and_find_path
from ._exceptions import (
    AbortedUnmatched,
    HTTPStatusError,
    ParseError,
    RequestAborted,
    SeekError,
)
from ._matcher import Match, PathMatcher
from ._path import JSONPath
from ._session import FetchSession, SessionState
from ._transport import AbortSignal, aiter_body, iter_body

__title__ = "jsonseek"
__description__ = "Find a value in a streamed JSON response and stop downloading."
__version__ = "0.1.0"

try:
    from .cli import main
except ImportError:

    def main() -> None:  # type: ignore[misc]
        import sys

        print(
            'The "jsonseek" command requires the CLI extra. '
            'Install it with: pip install "jsonseek[cli]"',
            file=sys.stderr,
        )
        sys.exit(1)


_EXCLUDED_FROM_ALL = {"cli", "main"}

__all__ = sorted(
    (
        member
        for member in list(vars().keys())
        if (
            not member.startswith("_")
            or member in ["__description__", "__title__", "__version__"]
        )
        and member not in _EXCLUDED_FROM_ALL
    ),
    key=str.casefold,
)
