"""The proxy's listening loop and its command-line entry point."""

from __future__ import annotations

import argparse
import socket
import sys

from concurlab.context import ProxyContext
from concurlab.handler import handle_client

PENDING_CONNECTIONS_NUMBER = 5
DEFAULT_PORT = 8080
_ACCEPT_POLL_SECONDS = 0.5


def start_server(context: ProxyContext) -> None:
    """Accept clients on ``context.port`` until ``context.stop`` is set.

    Raises ``OSError`` when the listening socket cannot be set up.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server.bind(("0.0.0.0", context.port))
        server.listen(PENDING_CONNECTIONS_NUMBER)
        host, port = server.getsockname()
        print(f"[SERVER] :: Listening on socket {host}:{port} ...", flush=True)
        server.settimeout(_ACCEPT_POLL_SECONDS)

        while not context.stop:
            try:
                client, (client_ip, client_port) = server.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if context.stop:
                    break
                print(f"accept: {exc}", file=sys.stderr, flush=True)
                continue
            client.settimeout(None)
            print(
                f"[SERVER] :: Connection established with {client_ip}:{client_port}",
                flush=True,
            )
            handle_client(client, context)


def main(argv: list[str] | None = None) -> int:
    """Run the caching proxy; returns the process exit status."""
    parser = argparse.ArgumentParser(description="Caching HTTP proxy.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    parser.add_argument(
        "--parallel", action="store_true", help="serve clients on the worker pool"
    )
    args = parser.parse_args(argv)

    context = ProxyContext(args.port, parallel=args.parallel)
    try:
        start_server(context)
    except OSError as exc:
        print(f"Error starting server: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    finally:
        context.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())