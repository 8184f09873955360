import argparse
import json
import sys

from econtract_app.config import load_config
from econtract_app.core.demo_data import demo_contracts
from econtract_app.repositories import create_contract_repository
from econtract_app.repositories.db import get_engine, init_db
from econtract_app.utils.logging import init_logging


def _serve(args) -> int:
    import uvicorn

    uvicorn.run("econtract_app.api.app:app", host=args.host, port=args.port, reload=args.reload, log_config=None)
    return 0


def _init_db(args) -> int:
    config = load_config()
    engine = init_db(get_engine(args.dsn or config.contracts_dsn))
    print(json.dumps({"status": "ok", "database": engine.url.render_as_string(hide_password=True)}))
    return 0


def _seed(args) -> int:
    config = load_config()
    if config.is_demo:
        print(json.dumps({"error": "seed needs CONTRACTS_DSN pointing at a database"}))
        return 1
    repository = create_contract_repository(config)
    added = [c for c in demo_contracts() if not repository.exists(c.contract_id)]
    repository.create_many(added)
    print(json.dumps({"status": "ok", "count": len(added)}))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="econtract")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_serve)

    initdb = sub.add_parser("init-db", help="Create database tables")
    initdb.add_argument("--dsn", default=None, help="Database URL (defaults to CONTRACTS_DSN)")
    initdb.set_defaults(func=_init_db)

    seed = sub.add_parser("seed", help="Load the demo contracts into the configured database")
    seed.set_defaults(func=_seed)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    init_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
