import pandas as pd
import pytest

from leads.importer import LeadImporter
from leads.spreadsheet import UnsupportedFileTypeError, load_spreadsheet, map_headers


@pytest.fixture()
def upload_dataframe():
    return pd.DataFrame(
        [
            {
                "Data de Entrada": "15/01/2024",
                "Nome": "Ana Silva",
                "E-mail": "ana.silva@email.com",
                "Telefone": "(11) 99999-1234",
                "Estado": "SP",
                "Tags": "interessado;premium",
                "Origem": "Favale",
                "Status": "Lead",
                "Observações": "",
            },
            {
                "Data de Entrada": "",
                "Nome": "",
                "E-mail": "",
                "Telefone": "",
                "Estado": "",
                "Tags": "",
                "Origem": "",
                "Status": "",
                "Observações": "",
            },
            {
                "Data de Entrada": "2024-01-16",
                "Nome": "Carlos Oliveira",
                "E-mail": "carlos@email.com",
                "Telefone": "11888885678",
                "Estado": "RJ",
                "Tags": "",
                "Origem": "Pink",
                "Status": "Aluno",
                "Observações": "Já iniciou o programa",
            },
        ]
    )


def test_map_headers_understands_portuguese_and_english():
    header_map = map_headers(["Nome", "E-mail", "Phone Number", "Observações", "Instagram"])

    assert header_map == {
        "Nome": "name",
        "E-mail": "email",
        "Phone Number": "phone",
        "Observações": "notes",
        "Instagram": "Instagram",
    }


def test_load_spreadsheet_from_csv(upload_dataframe, tmp_path):
    csv_path = tmp_path / "leads.csv"
    upload_dataframe.to_csv(csv_path, index=False)

    rows = load_spreadsheet(csv_path)

    assert len(rows) == 2
    assert rows[0] == {
        "entryDate": "15/01/2024",
        "name": "Ana Silva",
        "email": "ana.silva@email.com",
        "phone": "(11) 99999-1234",
        "state": "SP",
        "tags": "interessado;premium",
        "source": "Favale",
        "status": "Lead",
    }
    assert rows[1]["phone"] == "11888885678"
    assert rows[1]["notes"] == "Já iniciou o programa"


def test_load_spreadsheet_from_excel_feeds_importer(upload_dataframe, tmp_path, store):
    excel_path = tmp_path / "leads.xlsx"
    upload_dataframe.to_excel(excel_path, index=False)

    rows = load_spreadsheet(excel_path)
    result = LeadImporter(store).import_leads(rows)

    assert [entry["email"] for entry in result.success] == ["ana.silva@email.com", "carlos@email.com"]
    assert store.rows("leads")[0]["tags"] == ["interessado", "premium"]
    assert store.rows("leads")[0]["entryDate"] == "2024-01-15T00:00:00+00:00"


def test_load_spreadsheet_custom_mapping(tmp_path):
    csv_path = tmp_path / "leads.csv"
    pd.DataFrame([{"Contato": "11 91111-2222"}]).to_csv(csv_path, index=False)

    assert load_spreadsheet(csv_path, column_mapping={"Contato": "phone"}) == [{"phone": "11 91111-2222"}]


def test_load_spreadsheet_rejects_unknown_extension(tmp_path):
    path = tmp_path / "leads.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_spreadsheet(path)


def test_load_spreadsheet_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_spreadsheet(tmp_path / "missing.csv")
