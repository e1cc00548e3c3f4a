from __future__ import annotations

import argparse
import os

import uvicorn
from dotenv import load_dotenv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Learnify API server.")
    parser.add_argument("--host", default=None, help="Host to bind to (env HOST).")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (env PORT).")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload.")
    return parser


def main() -> None:
    load_dotenv()
    args = build_parser().parse_args()
    uvicorn.run(
        "web_api:app",
        host=args.host or os.getenv("HOST", "127.0.0.1"),
        port=args.port or int(os.getenv("PORT", "8000")),
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
