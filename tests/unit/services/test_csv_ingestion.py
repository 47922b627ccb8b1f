# tests/unit/services/test_csv_ingestion.py
from users_api.services.csv_ingestion import USER_CSV_HEADER_MAP, parse_csv

HEADER = "firstname,lastname,email,phone,status,provider,birth_date"


def test_rows_are_renamed_through_header_map(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(
        f"{HEADER}\n"
        "Ana,Lopez,ana@example.com,(555) 555-2001,Lead,Facebook,1991-02-03\n",
        encoding="utf-8",
    )

    rows = list(parse_csv(csv_file))

    assert rows == [{
        "firstName": "Ana",
        "lastName": "Lopez",
        "email": "ana@example.com",
        "phone": "(555) 555-2001",
        "status": "Lead",
        "marketingSource": "Facebook",
        "birthDate": "1991-02-03",
    }]


def test_unmapped_headers_are_dropped(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(
        "firstname,notes,provider,FirstName\n"
        "Ana,call back,Google,ignored\n",
        encoding="utf-8",
    )

    rows = list(parse_csv(csv_file))

    assert rows == [{"firstName": "Ana", "marketingSource": "Google"}]


def test_rows_keep_file_order_and_are_not_validated(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(
        f"{HEADER}\n"
        "Zed,Last,not-an-email,12345,,,yesterday\n"
        "Amy,Last,amy@example.com,(555) 555-2002,,,1990-01-01\n",
        encoding="utf-8",
    )

    rows = list(parse_csv(csv_file))

    assert [r["firstName"] for r in rows] == ["Zed", "Amy"]
    assert rows[0]["email"] == "not-an-email"
    assert rows[0]["birthDate"] == "yesterday"


def test_byte_order_mark_is_ignored(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_bytes(("\ufeff" + f"{HEADER}\nAna,Lopez,a@example.com,p,s,x,1990-01-01\n").encode("utf-8"))

    rows = list(parse_csv(csv_file))

    assert rows[0]["firstName"] == "Ana"


def test_custom_header_map(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text("given,family\nAna,Lopez\n", encoding="utf-8")

    rows = list(parse_csv(csv_file, {"given": "firstName"}))

    assert rows == [{"firstName": "Ana"}]
    assert "given" not in USER_CSV_HEADER_MAP


def test_parse_is_lazy_and_single_pass(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(f"{HEADER}\nAna,Lopez,a@example.com,p,s,x,1990-01-01\n", encoding="utf-8")

    rows = parse_csv(csv_file)

    assert next(rows)["email"] == "a@example.com"
    assert list(rows) == []


def test_invalid_utf8_bytes_are_replaced_not_raised(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_bytes(f"{HEADER}\nJosé,Pérez,jose@example.com,p,s,x,1990-01-01\n".encode("latin-1"))

    rows = list(parse_csv(csv_file))

    assert rows[0]["firstName"] == "Jos\ufffd"
    assert rows[0]["lastName"] == "P\ufffdrez"
    assert rows[0]["email"] == "jose@example.com"


def test_ragged_rows_keep_mapped_cells_only(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(
        "firstname,lastname,email\n"
        "Ana,Lopez,ana@example.com,extra,cells\n"
        "Ben\n",
        encoding="utf-8",
    )

    rows = list(parse_csv(csv_file))

    assert rows[0] == {"firstName": "Ana", "lastName": "Lopez", "email": "ana@example.com"}
    assert rows[1] == {"firstName": "Ben", "lastName": None, "email": None}
