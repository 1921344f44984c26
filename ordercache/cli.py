from __future__ import annotations
import argparse, sys
import orjson
import uvicorn
from ordercache.config import Settings, settings
from ordercache.cache import OrderCache
from ordercache.db import make_engine
from ordercache.errors import OrderValidationError
from ordercache.log import configure_logging
from ordercache.pipeline import IngestionPipeline
from ordercache.schema_manager import ensure_schema
from ordercache.store import OrderStore

def _store(args) -> OrderStore:
    return OrderStore(make_engine(args.database_url, settings.DB_SCHEMA))

def cmd_serve(args):
    from ordercache.api import create_app
    s = Settings(DATABASE_URL=args.database_url, LOG_LEVEL=args.log_level, API_HOST=args.host, API_PORT=args.port)
    uvicorn.run(create_app(s), host=args.host, port=args.port, reload=False)

def cmd_init_db(args):
    created = ensure_schema(make_engine(args.database_url, settings.DB_SCHEMA))
    print({"created": [t for t, c in created.items() if c], "existing": [t for t, c in created.items() if not c]})

def cmd_submit(args) -> int:
    store = _store(args)
    ensure_schema(store.engine)
    cache = OrderCache()
    cache.populate(store.load_all())
    pipeline = IngestionPipeline(store, cache)

    failed = 0
    for path in args.files:
        try:
            with open(path, "rb") as f:
                document = orjson.loads(f.read())
            result = pipeline.submit_document(document)
        except orjson.JSONDecodeError as e:
            failed += 1
            print({"file": path, "state": "invalid", "error": str(e)})
            continue
        except OrderValidationError as e:
            failed += 1
            print({"file": path, "state": "invalid", "error": e.message, "details": e.details})
            continue
        if not result.ok and not result.duplicate:
            failed += 1
        print({"file": path, "order_uid": result.order_uid, "state": result.state.value, "cause": result.cause})
    return 1 if failed else 0

def cmd_list(args):
    orders = _store(args).load_all()
    if args.limit:
        orders = orders[:args.limit]
    docs = [o.model_dump() for o in orders]
    sys.stdout.write(orjson.dumps(docs, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")

def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="ordercache")
    p.add_argument("--database-url", default=settings.DATABASE_URL)
    p.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve")
    s.add_argument("--host", default=settings.API_HOST)
    s.add_argument("--port", type=int, default=settings.API_PORT)
    s.set_defaults(fn=cmd_serve)

    i = sub.add_parser("init-db")
    i.set_defaults(fn=cmd_init_db)

    sm = sub.add_parser("submit")
    sm.add_argument("files", nargs="+")
    sm.set_defaults(fn=cmd_submit)

    ls = sub.add_parser("list")
    ls.add_argument("--limit", type=int, default=0)
    ls.set_defaults(fn=cmd_list)

    args = p.parse_args(argv)
    # stdout carries command output
    configure_logging(args.log_level, settings.LOG_JSON, stream=sys.stderr)
    return args.fn(args) or 0

if __name__ == "__main__":
    raise SystemExit(main())
