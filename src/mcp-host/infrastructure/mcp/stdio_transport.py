"""Stdio transport: a local MCP server spoken to over its standard streams.

This transport spawns an MCP server as a subprocess and exchanges
newline-delimited JSON-RPC messages over its stdin/stdout pipes.

This is the most common transport for local MCP servers launched
through uvx, npx, docker or a plain interpreter.
"""

import asyncio
import json
import logging
import os
from typing import Any

from domain.enums import McpTransportVariant

from .transport import IMcpTransport, McpConnectionError

logger = logging.getLogger(__name__)

# Seconds to wait for the subprocess to exit after terminate()
TERMINATE_TIMEOUT = 2.0

# Servers may emit large tool schemas or results on a single line
STREAM_LIMIT = 16 * 1024 * 1024


class StdioTransport(IMcpTransport):
    """Runs an MCP server as a child process and frames messages one per line.

    Lifecycle:
    - open(): Spawns the process and starts the stdout/stderr readers
    - close(): Closes stdin, terminates the process, kills it if needed

    Attributes:
        command: Executable to spawn
        args: Ordered arguments for the executable
        environment: Variables merged over the current process environment
        cwd: Working directory for the subprocess
    """

    variant = McpTransportVariant.STDIO

    def __init__(
        self,
        command: str,
        args: list[str] | None = None,
        environment: dict[str, str] | None = None,
        cwd: str | None = None,
    ):
        """Describe the process to launch; nothing is spawned until open().

        Args:
            command: Executable to spawn (e.g., "uvx")
            args: Arguments for the executable (e.g., ["my-mcp-server"])
            environment: Variables layered over the host environment
            cwd: Directory the server starts in
        """
        super().__init__()
        if not command:
            raise ValueError("Command cannot be empty")

        self._command = command
        self._args = list(args or [])
        self._environment = environment or {}
        self._cwd = cwd

        # Runtime state
        self._process: asyncio.subprocess.Process | None = None
        self._stdout_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()

    async def open(self) -> None:
        """Spawn the subprocess.

        Raises:
            McpConnectionError: If the subprocess cannot be started
        """
        if self._process is not None or self._closed:
            raise McpConnectionError("Transport already opened")

        env = {**os.environ, **self._environment}

        try:
            logger.debug(f"Spawning MCP server: {self._command} {' '.join(self._args)}")
            self._process = await asyncio.create_subprocess_exec(
                self._command,
                *self._args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=self._cwd,
                limit=STREAM_LIMIT,
            )
        except FileNotFoundError as e:
            raise McpConnectionError(f"MCP server command not found: {self._command}", e) from e
        except (OSError, ValueError) as e:
            # ValueError: NUL bytes in command/args/env or '=' in an env name
            raise McpConnectionError(f"Failed to spawn MCP server: {e}", e) from e

        self._stdout_task = asyncio.create_task(self._read_stdout())
        self._stderr_task = asyncio.create_task(self._read_stderr())
        logger.debug(f"MCP server process started (pid={self._process.pid})")

    async def send(self, message: dict[str, Any]) -> None:
        """Write one message as a single line on the subprocess stdin.

        Raises:
            McpConnectionError: If the process is gone or the pipe is broken
        """
        if not self.is_open or not self._process or not self._process.stdin:
            raise McpConnectionError("Transport not connected")

        line = json.dumps(message, separators=(",", ":")) + "\n"
        try:
            async with self._write_lock:
                self._process.stdin.write(line.encode("utf-8"))
                await self._process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise McpConnectionError("MCP server connection lost", e) from e

    @property
    def is_open(self) -> bool:
        """Check if the subprocess is running and the transport not closed."""
        return not self._closed and self._process is not None and self._process.returncode is None

    @property
    def returncode(self) -> int | None:
        """Exit code of the subprocess, once it has exited."""
        return self._process.returncode if self._process else None

    async def _close_channel(self) -> None:
        """Terminate the subprocess and stop the reader tasks."""
        process = self._process
        if process is not None:
            if process.stdin and not process.stdin.is_closing():
                process.stdin.close()
            try:
                if process.returncode is None:
                    # Try graceful shutdown first
                    process.terminate()
                    try:
                        await asyncio.wait_for(process.wait(), timeout=TERMINATE_TIMEOUT)
                    except TimeoutError:
                        logger.debug(f"MCP server (pid={process.pid}) did not exit, killing it")
                        process.kill()
                        await process.wait()
            except ProcessLookupError:
                # Process already exited
                pass

        for task in (self._stdout_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._stdout_task = None
        self._stderr_task = None
        logger.debug("MCP stdio transport closed")

    async def _read_stdout(self) -> None:
        """Background task decoding stdout lines into inbound messages."""
        if not self._process or not self._process.stdout:
            return

        try:
            while True:
                try:
                    line = await self._process.stdout.readline()
                except ValueError as e:
                    # Line exceeded STREAM_LIMIT; the stream cannot be resynchronized
                    logger.error(f"MCP server output line too long: {e}")
                    break
                if not line:
                    break
                text = line.decode("utf-8", errors="replace").strip()
                if not text:
                    continue
                try:
                    message = json.loads(text)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring non JSON-RPC output from MCP server: {text[:200]}")
                    continue
                if isinstance(message, list):
                    for item in message:
                        self._deliver(item)
                else:
                    self._deliver(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Error reading MCP server output: {e}")
        finally:
            if self._process is not None and self._process.returncode is not None:
                logger.info(f"MCP server exited with code {self._process.returncode}")
            self._end_stream()

    async def _read_stderr(self) -> None:
        """Background task to read and log stderr from subprocess."""
        if not self._process or not self._process.stderr:
            return

        try:
            while True:
                line = await self._process.stderr.readline()
                if not line:
                    break
                logger.warning(f"MCP stderr: {line.decode('utf-8', errors='replace').rstrip()}")
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Error reading MCP stderr: {e}")

    def __repr__(self) -> str:
        """String representation."""
        status = "open" if self.is_open else "closed"
        cmd = " ".join([self._command, *self._args])
        return f"<StdioTransport({cmd}) [{status}]>"
