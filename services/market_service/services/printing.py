"""Host printing backends.

The receipt engine talks to a small capability interface:
``list_printers() -> list[str]`` and ``print_file(path, printer) -> PrintResult``.
One backend is chosen at startup from the host platform and available tools.
Printing is a best-effort side channel: failures come back as a result with
``success=False`` and never touch receipt state.
"""

import asyncio
import shutil
import sys
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from libs.common.logging import get_logger

logger = get_logger(__name__)

COMMAND_TIMEOUT_SECONDS = 30


@dataclass
class PrintResult:
    success: bool
    message: str
    printer: Optional[str] = None


class CommandError(Exception):
    """A print subsystem command exited non-zero or could not be run."""


async def run_command(*args: str, timeout: float = COMMAND_TIMEOUT_SECONDS) -> str:
    """Run an external command and return its stdout."""
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(f"{args[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise CommandError(f"{args[0]} timed out after {timeout}s") from e

    if process.returncode != 0:
        detail = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
        raise CommandError(f"{args[0]}: {detail}")
    return stdout.decode(errors="replace")


class PrinterBackend:
    """Base backend: no printers, every print fails."""

    name = "none"

    async def list_printers(self) -> list[str]:
        return []

    async def print_file(self, path: str, printer: Optional[str] = None) -> PrintResult:
        return PrintResult(
            success=False,
            message="Printing is not supported on this host",
            printer=printer,
        )


class CupsPrinterBackend(PrinterBackend):
    """Linux and macOS via the CUPS command line tools."""

    name = "cups"

    async def list_printers(self) -> list[str]:
        try:
            output = await run_command("lpstat", "-e")
        except CommandError as e:
            logger.warning("Could not list printers: %s", e)
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def print_file(self, path: str, printer: Optional[str] = None) -> PrintResult:
        args = ["lp"]
        if printer:
            args += ["-d", printer]
        args.append(path)
        try:
            output = await run_command(*args)
        except CommandError as e:
            logger.warning("Print failed for %s: %s", path, e)
            return PrintResult(success=False, message=f"Print failed: {e}", printer=printer)
        message = output.strip() or "Sent to printer"
        return PrintResult(success=True, message=message, printer=printer)


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class WindowsPrinterBackend(PrinterBackend):
    """Windows via PowerShell and the PDF handler's print verbs."""

    name = "windows"

    async def list_printers(self) -> list[str]:
        try:
            output = await run_command(
                "powershell",
                "-NoProfile",
                "-Command",
                "Get-Printer | Select-Object -ExpandProperty Name",
            )
        except CommandError as e:
            logger.warning("Could not list printers: %s", e)
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def print_file(self, path: str, printer: Optional[str] = None) -> PrintResult:
        if printer:
            command = (
                f"Start-Process -FilePath {_ps_quote(path)} -Verb PrintTo "
                f"-ArgumentList {_ps_quote(chr(34) + printer + chr(34))} -WindowStyle Hidden"
            )
        else:
            command = f"Start-Process -FilePath {_ps_quote(path)} -Verb Print -WindowStyle Hidden"
        try:
            await run_command("powershell", "-NoProfile", "-Command", command)
        except CommandError as e:
            logger.warning("Print failed for %s: %s", path, e)
            return PrintResult(success=False, message=f"Print failed: {e}", printer=printer)
        return PrintResult(success=True, message="Sent to printer", printer=printer)


def select_backend(platform: str = sys.platform) -> PrinterBackend:
    if platform.startswith("win"):
        return WindowsPrinterBackend()
    if shutil.which("lp") and shutil.which("lpstat"):
        return CupsPrinterBackend()
    return PrinterBackend()


@lru_cache
def get_printer_backend() -> PrinterBackend:
    """Return the backend for this host, chosen once."""
    backend = select_backend()
    logger.info("Using %s printer backend", backend.name)
    return backend
