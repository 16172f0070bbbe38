from __future__ import annotations

import re

import pytest

from obras_api.services.storage_paths import (
    MAX_OBJECT_NAME_LENGTH,
    build_employee_object_path,
    build_obra_object_path,
    obra_type_folder,
    safe_extension,
    sanitize_base_name,
    sanitize_object_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("contrato final.pdf", "contrato_final.pdf"),
        ("../../etc/passwd", "passwd"),
        ("..\\secret.xlsx", "secret.xlsx"),
        ("cotización (1).pdf", "cotizacin_1.pdf"),
        (".hidden", "hidden"),
        ("", "archivo"),
        ("###", "archivo"),
    ],
)
def test_sanitize_object_name(raw, expected):
    assert sanitize_object_name(raw) == expected


def test_sanitize_object_name_caps_length():
    assert len(sanitize_object_name("a" * 500 + ".pdf")) == MAX_OBJECT_NAME_LENGTH


def test_sanitize_base_name_and_extension():
    assert sanitize_base_name("Mi CURP 2024.PDF") == "mi-curp-2024"
    assert sanitize_base_name("../INE frente.jpg") == "ine-frente"
    assert sanitize_base_name(".pdf") == "archivo"
    assert safe_extension("Mi CURP 2024.PDF") == ".pdf"
    assert safe_extension("sin-extension") == ""


def test_obra_folders():
    assert obra_type_folder("contract") == "contracts"
    assert obra_type_folder("quote") == "quotes"
    assert obra_type_folder("other") == "other"


def test_build_obra_object_path():
    path = build_obra_object_path("obra-1", "contract", "Contrato A.pdf", token="tok")
    assert path == "obras/obra-1/contracts/tok_Contrato_A.pdf"

    generated = build_obra_object_path("obra-1", "quote", "q.pdf")
    assert re.fullmatch(r"obras/obra-1/quotes/[0-9a-f-]{36}_q\.pdf", generated)


def test_build_employee_object_path():
    path = build_employee_object_path("emp-1", "ine", "INE Frente.JPG", clock=lambda: 1700000000.5)
    assert re.fullmatch(r"employees/emp-1/ine/1700000000500[0-9a-f]{6}-ine-frente\.jpg", path)


def test_employee_paths_differ_within_the_same_millisecond():
    paths = {build_employee_object_path("emp-1", "curp", "curp.pdf", clock=lambda: 1.0) for _ in range(20)}
    assert len(paths) == 20
