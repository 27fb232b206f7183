import argparse
import sys
from client.sdk.client import ChatRelayClient, RelayRequestError


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a chat message through the relay")
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8002",
        help="Relay URL (default: http://localhost:8002)",
    )
    parser.add_argument(
        "--message",
        type=str,
        required=True,
        help="Message text",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=30,
        help="Request timeout in seconds (default: 30)",
    )

    args = parser.parse_args()

    client = ChatRelayClient(base_url=args.url, timeout=args.timeout)

    try:
        response = client.send(args.message)
        print(response.reply)
    except RelayRequestError as e:
        print(f"ERROR ({e.status_code}): {e.error}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"ERROR: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
