import argparse

from .config import DEFAULT_BIND, DEFAULT_LOG_LEVEL, DEFAULT_PORT, configure_logging
from .gui import run_client_gui, run_host_gui


def main() -> None:
    parser = argparse.ArgumentParser(description="Tris - 1v1 tic-tac-toe over a direct link")
    parser.add_argument("--log-level", type=str, default=DEFAULT_LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    host_p = subparsers.add_parser("host", help="Wait for the other player to connect")
    host_p.add_argument("--bind", type=str, default=DEFAULT_BIND, help="Bind address")
    host_p.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to listen on")

    join_p = subparsers.add_parser("join", help="Connect to a waiting player")
    join_p.add_argument("--address", type=str, required=True, help="Peer IP or address")
    join_p.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to connect")

    args = parser.parse_args()
    configure_logging(args.log_level)

    if args.mode == "host":
        run_host_gui(port=args.port, bind=args.bind)
    elif args.mode == "join":
        run_client_gui(host=args.address, port=args.port)


if __name__ == "__main__":
    main()
