"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

from ..errors import ErrorKind, UnpackError

T = TypeVar('T')

# Exit codes by unpack error kind
EXIT_CODES = {
    ErrorKind.IO: 3,
    ErrorKind.DESERIALIZE: 4,
    ErrorKind.INVALID_LAYOUT: 4,
    ErrorKind.LAYOUT_VERSION_NOT_SUPPORTED: 5,
    ErrorKind.SCHEMA_VERSION_NOT_SUPPORTED: 5,
    ErrorKind.DIGEST_ALGORITHM_NOT_SUPPORTED: 5,
    ErrorKind.UNEXPECTED_MEDIA_TYPE: 6,
    ErrorKind.VERIFY_CONTENT: 7,
    ErrorKind.MANIFEST_NOT_MATCH: 10,
    ErrorKind.MANIFEST_NOT_UNIQUE: 11,
    ErrorKind.INDEX_DEPTH_EXCEEDED: 11,
    ErrorKind.BUNDLE_DIRECTORY_NOT_EMPTY: 12,
    ErrorKind.LAYER_EXTRACTION: 13,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 2: Usage or validation error (ValueError)
    - 3-13: ``UnpackError``, by kind (see ``EXIT_CODES``)
    - 1: Anything else

    Args:
        exc: Exception to map

    Returns:
        Exit code (1 as fallback for unknown exceptions)
    """
    if isinstance(exc, UnpackError):
        return EXIT_CODES.get(exc.kind, 1)
    if isinstance(exc, ValueError):
        return 2
    return 1


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit. This centralizes error handling so
    CLI commands don't need individual try/except blocks.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
