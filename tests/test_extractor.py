import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from form_autofill.extractor import (  # noqa: E402
    build_context_prefix,
    build_generic_fields,
    build_structured_fields,
    resolve_label,
)


def _raw(position: int, **overrides) -> dict:
    entry = {
        "position": position,
        "tag": "input",
        "type": "text",
        "ariaLabel": "",
        "placeholder": "",
        "forLabel": "",
        "groupLabel": "",
        "wrapLabel": "",
        "name": "",
        "headers": [],
        "hint": "",
        "options": [],
    }
    entry.update(overrides)
    return entry


def test_label_chain_stops_at_first_non_blank_candidate():
    assert resolve_label(_raw(0, ariaLabel="  ", placeholder="Nama lengkap", name="full_name")) == "Nama lengkap"
    assert resolve_label(_raw(0, groupLabel="Alamat", wrapLabel="ignored")) == "Alamat"
    assert resolve_label(_raw(0, name="phone")) == "phone"
    assert resolve_label(_raw(0)) == ""


def test_context_prefix_is_outermost_first_and_deduplicated():
    headers = ["Regulator", "Regulator", "", "Inspeksi Tabung"]

    assert build_context_prefix(headers) == ["Inspeksi Tabung", "Regulator"]


def test_generic_fields_drop_unlabeled_and_hidden_inputs_and_reindex():
    raw = [
        _raw(0, name="token", type="hidden"),
        _raw(1),
        _raw(2, ariaLabel="Pressure", headers=["Regulator", "Inspeksi"], hint=" Standard: 5 bar "),
        _raw(3, tag="select", forLabel="Kota", options=["Bandung", "Bogor"]),
    ]

    fields = build_generic_fields(raw)

    assert [field.index for field in fields] == [0, 1]
    assert fields[0].label == "Inspeksi > Regulator > Pressure"
    assert fields[0].normalized_label == "inspeksi > regulator > pressure"
    assert fields[0].hint == "Standard: 5 bar"
    assert fields[1].options == ["Bandung", "Bogor"]
    assert all(field.kind == "generic" for field in fields)


def test_structured_fields_skip_containers_without_heading():
    raw = [
        {"position": 0, "heading": None, "options": []},
        {"position": 1, "heading": " Jenis Kelamin \n", "options": ["Pria", "Wanita "]},
    ]

    fields = build_structured_fields(raw)

    assert len(fields) == 1
    assert fields[0].index == 0
    assert fields[0].label == "Jenis Kelamin"
    assert fields[0].normalized_label == "jenis kelamin"
    assert fields[0].options == ["Pria", "Wanita"]
    assert fields[0].kind == "structured"
