"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command
wrapper so every Typer command handles registry errors the same way.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "NotFound": 1,
    "ValueError": 2,
    "UnsupportedSchemaVersion": 2,
    "RegistryError": 3,
    "AuthenticationFailed": 4,
    "AuthorizationFailed": 5,
    "RegistryUnreachable": 6,
    "MalformedResponse": 7,
    "DigestMismatch": 7,
    "UnknownAuthScheme": 8,
    "MethodNotSupported": 9,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns exit codes:
    - 0: Success
    - 1: Repository, manifest or blob not found
    - 2: Invalid input or schema version (ValueError, UnsupportedSchemaVersion)
    - 3: Other registry error, or unknown error
    - 4: Authentication failed
    - 5: Authorization failed
    - 6: Registry unreachable
    - 7: Malformed response or digest mismatch
    - 8: Unknown auth scheme
    - 9: Method not supported

    Args:
        exc: Exception to map

    Returns:
        Exit code, with 3 as fallback for unknown exceptions
    """
    return EXIT_CODES.get(type(exc).__name__, 3)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, after printing the error message.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=exit_code_for(e)) from e
