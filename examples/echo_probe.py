"""
Open a WebSocket to a public echo server and report what the recorder saw.
"""

import asyncio
import logging

from wsharness import ConnectionLauncher, ConnectionState, EventRecorder, wait_for_connection


async def main() -> None:
    """Connect, exchange one message, close and print the lifecycle."""
    host = "ws.postman-echo.com"
    recorder = EventRecorder(observer=lambda record, state: print(f"{record!r} -> {state.value}"))

    future = ConnectionLauncher().call(f"wss://{host}/raw", f"https://{host}", recorder)
    ws = await wait_for_connection(future, timeout=10.0)

    await ws.send_text("hello harness")
    opcode, payload = await ws.recv()
    print(f"Received: opcode={opcode}, payload={payload.decode()}")

    await ws.close()
    await recorder.wait_terminal(timeout=5.0)
    print(f"Final state: {recorder.state().value}, close code: {recorder.close_code}")
    assert recorder.state() is ConnectionState.CLOSED


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    try:
        asyncio.run(main())
    except Exception as exc:
        print(f"WebSocket error: {exc}")
