import io
import json

import pytest

from main import EXIT_INPUT_ERROR, EXIT_NEEDS_ATTENTION, EXIT_OK, assignment_arg, main

RECEIPT = "Coffee 3.50\nBagel 2.25\nSubtotal 5.75\nTax 0.50\nTotal 6.25\n"


@pytest.fixture
def receipt_file(tmp_path):
    path = tmp_path / "receipt.txt"
    path.write_text(RECEIPT)
    return str(path)


def test_shows_parsed_receipt(receipt_file, capsys) -> None:
    assert main(["--text", receipt_file]) == EXIT_OK

    out = capsys.readouterr().out
    assert "Coffee" in out
    assert "$5.75" in out
    assert "$6.25" in out


def test_split_as_json(receipt_file, capsys) -> None:
    code = main([
        "--text", receipt_file,
        "--people", "Ann", "Bob",
        "--payer", "1",
        "--assign", "1=1", "2=2",
        "--json",
    ])

    assert code == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["payer"] == "Ann"
    assert data["grand_total"] == "6.25"
    assert data["tax"] == "0.50"
    assert [p["total"] for p in data["people"]] == ["3.75", "2.50"]
    assert data["people"][0]["is_payer"]
    assert data["people"][1]["items"] == [{"name": "Bagel", "price": "2.25"}]
    assert data["settlements"] == [{"from": "Bob", "to": "Ann", "amount": "2.50"}]


def test_split_text_report(receipt_file, capsys) -> None:
    code = main([
        "--text", receipt_file,
        "--people", "Ann", "Bob",
        "--payer", "2",
        "--assign", "1=1", "2=1",
        "--tip", "20",
    ])

    assert code == EXIT_OK
    out = capsys.readouterr().out
    # 20% of 5.75 tip plus the 0.50 tax found on the receipt
    assert "Bob paid $7.40" in out
    assert "Bob's portion: $0.00" in out
    assert "Ann owes Bob $7.40" in out


def test_tax_override_as_amount(receipt_file, capsys) -> None:
    code = main([
        "--text", receipt_file,
        "--people", "Ann",
        "--payer", "1",
        "--assign", "1=1", "2=1",
        "--tax", "1.25", "--tax-mode", "amount",
        "--json",
    ])

    assert code == EXIT_OK
    assert json.loads(capsys.readouterr().out)["grand_total"] == "7.00"


def test_unassigned_items_need_attention(receipt_file, capsys) -> None:
    code = main(["--text", receipt_file, "--people", "Ann", "Bob", "--payer", "1", "--assign", "1=2"])

    assert code == EXIT_NEEDS_ATTENTION
    out = capsys.readouterr().out
    assert "Please assign 1 remaining item" in out
    assert "Unassigned items: 2" in out


def test_missing_payer_needs_attention(receipt_file, capsys) -> None:
    code = main(["--text", receipt_file, "--people", "Ann", "--assign", "1=1", "2=1"])

    assert code == EXIT_NEEDS_ATTENTION
    assert "Please select who paid the bill" in capsys.readouterr().out


def test_unknown_person_is_an_input_error(receipt_file, capsys) -> None:
    code = main(["--text", receipt_file, "--people", "Ann", "--payer", "1", "--assign", "1=4"])

    assert code == EXIT_INPUT_ERROR
    assert "No person at index 3" in capsys.readouterr().out


def test_empty_scan_asks_for_rescan(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("THANK YOU FOR DINING\n"))

    assert main(["--text", "-"]) == EXIT_NEEDS_ATTENTION
    assert "Please rescan" in capsys.readouterr().out


def test_missing_text_file(tmp_path, capsys) -> None:
    assert main(["--text", str(tmp_path / "nope.txt")]) == EXIT_INPUT_ERROR
    assert "Cannot read" in capsys.readouterr().out


def test_assignment_arg_is_one_based() -> None:
    assert assignment_arg("3=1") == (2, 0)


@pytest.mark.parametrize("value", ["3", "a=1", "0=1", "1=0", "=2"])
def test_assignment_arg_rejects_bad_values(value) -> None:
    with pytest.raises(Exception):
        assignment_arg(value)


def test_json_without_people_prints_receipt(receipt_file, capsys) -> None:
    assert main(["--text", receipt_file, "--json"]) == EXIT_OK

    data = json.loads(capsys.readouterr().out)
    assert data["items"] == [{"name": "Coffee", "price": "3.50"}, {"name": "Bagel", "price": "2.25"}]
    assert data["subtotal"] == "5.75"
    assert data["tax"] == "0.50"
    assert data["total"] == "6.25"
