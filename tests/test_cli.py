import json
from ordercache.cli import main
from factories import order_doc

def _write(tmp_path, name, payload):
    p = tmp_path / name
    p.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return str(p)

def test_submit_then_list(tmp_path, db_url, capsys):
    a = _write(tmp_path, "a.json", order_doc("uid-a", 1))
    b = _write(tmp_path, "b.json", order_doc("uid-b", 0))

    assert main(["--database-url", db_url, "submit", a, b, a]) == 0
    out = capsys.readouterr().out
    assert "'state': 'committed'" in out
    assert "'state': 'duplicate'" in out

    assert main(["--database-url", db_url, "list"]) == 0
    listed = json.loads(capsys.readouterr().out)
    assert listed == [order_doc("uid-a", 1), order_doc("uid-b", 0)]

def test_submit_reports_invalid_files(tmp_path, db_url, capsys):
    bad_json = _write(tmp_path, "bad.json", "{oops")
    bad_doc = _write(tmp_path, "empty.json", {})

    assert main(["--database-url", db_url, "submit", bad_json, bad_doc]) == 1
    out = capsys.readouterr().out
    assert out.count("'state': 'invalid'") == 2

def test_init_db_is_idempotent(db_url, capsys):
    assert main(["--database-url", db_url, "init-db"]) == 0
    assert "'created': ['delivery', 'payment', 'orders', 'item']" in capsys.readouterr().out
    assert main(["--database-url", db_url, "init-db"]) == 0
    assert "'created': []" in capsys.readouterr().out
