#!/usr/bin/env python3
"""Edge AI Assistant CLI."""

import argparse
import logging
import sys
from config.settings import Settings
from orchestrator import EdgeAssistant


def _cmd_init_db(assistant: EdgeAssistant, args) -> int:
    added = assistant.account_store.seed_products()
    print(f"Database ready at {assistant.settings.db_path} ({added} products added)")
    for product in assistant.account_store.list_products():
        print(f"  {product['icon'] or '🔧'} {product['name']} ({product['id']})")
    return 0


def _cmd_chat(assistant: EdgeAssistant, args) -> int:
    result = assistant.relay.handle(
        message=args.message,
        session_key=args.session_id,
        site=args.site,
    )
    print(result.reply)
    return 0 if result.status_code < 400 else 1


def _cmd_serve(assistant: EdgeAssistant, args) -> int:
    import uvicorn
    from api.main import create_app

    uvicorn.run(create_app(assistant=assistant), host=args.host, port=args.port)
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Edge AI Assistant - chat relay and admin API for the Edge AI site"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to the SQLite database (default: data/edge_ai.db)"
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["anthropic", "openai", "agent"],
        help="LLM provider (default: from EDGE_LLM_PROVIDER or anthropic)"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create tables and seed the product catalogue")

    chat_parser = subparsers.add_parser("chat", help="Send one message through the relay")
    chat_parser.add_argument("--message", "-m", type=str, required=True, help="Message to send")
    chat_parser.add_argument("--session-id", "-s", type=str, help="Anonymous session key")
    chat_parser.add_argument("--site", type=str, help="Site tag (default: edge-ai)")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )

    overrides = {}
    if args.db_path:
        overrides["db_path"] = args.db_path
    if args.provider:
        overrides["llm_provider"] = args.provider
    if args.verbose:
        overrides["verbose"] = True
    settings = Settings.from_env(**overrides)

    commands = {
        "init-db": _cmd_init_db,
        "chat": _cmd_chat,
        "serve": _cmd_serve,
    }

    try:
        assistant = EdgeAssistant(settings=settings)
        sys.exit(commands[args.command](assistant, args))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
