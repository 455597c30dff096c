"""
Unit tests for the non-blocking line reader and the signal supervisor.
"""

import asyncio
import os
import signal

from hdlcd_tools.line_reader import LineReader
from hdlcd_tools.signals import SignalSupervisor


class TestLineReader:
    """Test line delivery from pipes and regular files."""

    def test_pipe_lines(self):
        """Lines arrive stripped; the partial tail is discarded at EOF."""

        async def scenario():
            loop = asyncio.get_running_loop()
            read_fd, write_fd = os.pipe()
            lines = []
            eof = loop.create_future()

            reader = LineReader(
                loop,
                lines.append,
                on_eof=lambda: eof.set_result(None),
                stream=os.fdopen(read_fd, "rb", buffering=0),
            )
            reader.start()

            os.write(write_fd, b"48 65\r\nsecond\n")
            await asyncio.sleep(0.05)
            os.write(write_fd, b"\nthird\npartial")
            os.close(write_fd)

            await asyncio.wait_for(eof, timeout=2.0)
            return lines, reader.closed

        lines, closed = asyncio.run(scenario())

        assert lines == [b"48 65", b"second", b"", b"third"]
        assert closed is True

    def test_regular_file(self, tmp_path):
        """Regular files are pumped from the loop."""
        path = tmp_path / "input.txt"
        path.write_bytes(b"de ad\nbe ef\n" + b"00 " * 3000 + b"\n")

        async def scenario():
            loop = asyncio.get_running_loop()
            lines = []
            eof = loop.create_future()

            with open(path, "rb") as stream:
                reader = LineReader(
                    loop, lines.append, on_eof=lambda: eof.set_result(None), stream=stream
                )
                reader.start()
                await asyncio.wait_for(eof, timeout=2.0)
            return lines

        lines = asyncio.run(scenario())

        assert lines[:2] == [b"de ad", b"be ef"]
        assert len(lines) == 3
        assert len(lines[2]) == 9000

    def test_dev_null(self):
        """A character device the loop cannot watch is read to EOF."""

        async def scenario():
            loop = asyncio.get_running_loop()
            lines = []
            eof = loop.create_future()

            with open(os.devnull, "rb") as stream:
                reader = LineReader(
                    loop, lines.append, on_eof=lambda: eof.set_result(None), stream=stream
                )
                reader.start()
                await asyncio.wait_for(eof, timeout=2.0)
            return lines, reader.closed

        lines, closed = asyncio.run(scenario())

        assert lines == []
        assert closed is True

    def test_close_stops_delivery(self, tmp_path):
        """close() from a line callback stops delivery without on_eof."""
        path = tmp_path / "input.txt"
        path.write_bytes(b"one\ntwo\nthree\n")

        async def scenario():
            loop = asyncio.get_running_loop()
            lines = []
            eofs = []

            with open(path, "rb") as stream:
                reader = LineReader(loop, None, on_eof=lambda: eofs.append(True), stream=stream)

                def on_line(line):
                    lines.append(line)
                    reader.close()

                reader.on_line = on_line
                reader.start()
                await asyncio.sleep(0.05)
                reader.close()
            return lines, eofs

        lines, eofs = asyncio.run(scenario())

        assert lines == [b"one"]
        assert eofs == []


class TestSignalSupervisor:
    """Test SIGINT/SIGTERM handling on the loop."""

    def test_first_signal_fires_once(self):
        """Only the first delivery fires; later ones are ignored."""

        async def scenario():
            loop = asyncio.get_running_loop()
            calls = []
            supervisor = SignalSupervisor(loop)
            supervisor.async_wait(lambda: calls.append("stop"))
            try:
                os.kill(os.getpid(), signal.SIGTERM)
                await asyncio.sleep(0.1)
                armed_after = supervisor.armed
                os.kill(os.getpid(), signal.SIGTERM)
                await asyncio.sleep(0.1)
            finally:
                supervisor.cancel()
            return calls, armed_after

        calls, armed_after = asyncio.run(scenario())

        assert calls == ["stop"]
        assert armed_after is False

    def test_rearm(self):
        """async_wait() re-arms after a delivery."""

        async def scenario():
            loop = asyncio.get_running_loop()
            calls = []
            supervisor = SignalSupervisor(loop)
            try:
                supervisor.async_wait(lambda: calls.append(1))
                os.kill(os.getpid(), signal.SIGTERM)
                await asyncio.sleep(0.1)
                supervisor.async_wait(lambda: calls.append(2))
                os.kill(os.getpid(), signal.SIGTERM)
                await asyncio.sleep(0.1)
            finally:
                supervisor.cancel()
            return calls

        assert asyncio.run(scenario()) == [1, 2]

    def test_cancel_idempotent(self):
        """cancel() disarms and can be called repeatedly."""

        async def scenario():
            supervisor = SignalSupervisor(asyncio.get_running_loop())
            supervisor.async_wait(lambda: None)
            supervisor.cancel()
            supervisor.cancel()
            return supervisor.armed

        assert asyncio.run(scenario()) is False
