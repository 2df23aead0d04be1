"""
Unit tests for the statement field extractors.
"""
import base64
import os
import sys
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from openpyxl import Workbook

from extractors import (
    BaseExtractor,
    ClaudeFieldExtractor,
    ExtractionError,
    PDFFieldExtractor,
    RecordTableLoader,
    get_extractor,
)
from extractors.pdf_extractor import (
    find_account_number,
    find_balance,
    find_bank_name,
    find_document_date,
    parse_statement_text,
)
from reconciler.models import ExtractedRecord

SEI_STATEMENT = """BANCO DO BRASIL S.A.
Anexo SEI - Demonstrativo de Saldo
Extrato de Conta Corrente
Agência: 1234-5   Conta: 12292-0
Data de emissão: 31/07/2025
1-SALDO ANTERIOR 1.000,00
5-CRÉDITOS 2.416.764,24
7-SALDO R$ 2.417.764,24
"""


class TestStatementTextHeuristics(unittest.TestCase):
    """Tests for the PDF text heuristics."""

    def test_parse_sei_statement(self):
        """Test all fields of a typical statement."""
        record = parse_statement_text(SEI_STATEMENT, "anexo_sei.pdf")
        self.assertEqual(record, ExtractedRecord(
            file_name="anexo_sei.pdf",
            bank_name="BANCO DO BRASIL",
            account_number="12292-0",
            document_date="31/07/2025",
            raw_balance_text="R$ 2.417.764,24",
        ))

    def test_balance_keyword_priority(self):
        """Test 7-SALDO wins over other SALDO lines."""
        text = "SALDO ANTERIOR 10,00\n7-SALDO 74.710,15\nSALDO DISPONIVEL 5,00"
        self.assertEqual(find_balance(text, ["7-SALDO", "SALDO"]), "74.710,15")

    def test_balance_last_line_last_amount(self):
        """Test the last amount on the last matching line is used."""
        text = "SALDO 31/07 1,00 2,00\nMovimento 9,99\nSALDO 01/08 3,00 4.000,50"
        self.assertEqual(find_balance(text, ["SALDO"]), "4.000,50")

    def test_balance_keeps_sign(self):
        self.assertEqual(find_balance("SALDO FINAL -1.234,56", ["SALDO FINAL"]), "-1.234,56")

    def test_balance_not_found(self):
        self.assertEqual(find_balance("Nenhum valor aqui", ["SALDO"]), "")
        self.assertEqual(find_balance("SALDO indisponível", ["SALDO"]), "")

    def test_account_after_label(self):
        self.assertEqual(find_account_number("Conta nº 98765-4", ["conta"]), "98765-4")
        self.assertEqual(find_account_number("Account: 0012-3456/7", ["account"]), "0012-3456/7")

    def test_account_skips_label_without_number(self):
        """Test a label followed by words is skipped."""
        text = "Extrato de Conta Corrente\nAgência 1 Conta: 555"
        self.assertEqual(find_account_number(text, ["conta corrente", "conta"]), "555")

    def test_account_missing(self):
        self.assertEqual(find_account_number("Contato: suporte", ["conta"]), "")

    def test_document_date(self):
        self.assertEqual(find_document_date("emitido em 05.08.2025 às 10h"), "05.08.2025")
        self.assertEqual(find_document_date("sem data"), "")

    def test_bank_name_verbatim(self):
        """Test the bank name is returned as spelled in the document."""
        self.assertEqual(find_bank_name("caixa econômica federal - extrato", ["Caixa Econômica Federal"]),
                         "caixa econômica federal")
        self.assertEqual(find_bank_name("Banco desconhecido", ["Itaú"]), "")


class TestPDFFieldExtractor(unittest.TestCase):
    """Tests for PDFFieldExtractor with pdfplumber mocked."""

    def _mock_pdf(self, mock_open, page_texts):
        pages = [MagicMock(**{"extract_text.return_value": text}) for text in page_texts]
        mock_open.return_value.__enter__.return_value.pages = pages

    @patch("extractors.pdf_extractor.pdfplumber.open")
    def test_extract_joins_pages(self, mock_open):
        """Test fields spread over several pages are found."""
        self._mock_pdf(mock_open, ["Banco do Brasil\nConta: 12292-0", None, "7-SALDO 2.417.764,24"])

        record = PDFFieldExtractor().extract("/tmp/extrato_julho.pdf")

        self.assertEqual(record.file_name, "extrato_julho.pdf")
        self.assertEqual(record.account_number, "12292-0")
        self.assertEqual(record.raw_balance_text, "2.417.764,24")
        mock_open.assert_called_once_with("/tmp/extrato_julho.pdf")

    @patch("extractors.pdf_extractor.pdfplumber.open")
    def test_display_name_override(self, mock_open):
        self._mock_pdf(mock_open, ["Conta: 1\nSALDO 1,00"])
        record = PDFFieldExtractor().extract("/tmp/input_ab12.pdf", file_name="julho.pdf")
        self.assertEqual(record.file_name, "julho.pdf")

    @patch("extractors.pdf_extractor.pdfplumber.open")
    def test_scanned_pdf_rejected(self, mock_open):
        """Test a PDF without a text layer raises ExtractionError."""
        self._mock_pdf(mock_open, [None, "   "])
        with self.assertRaises(ExtractionError) as ctx:
            PDFFieldExtractor().extract("/tmp/scan.pdf")
        self.assertEqual(ctx.exception.file_name, "scan.pdf")

    @patch("extractors.pdf_extractor.pdfplumber.open")
    def test_unreadable_pdf(self, mock_open):
        mock_open.side_effect = ValueError("broken xref")
        with self.assertRaises(ExtractionError):
            PDFFieldExtractor().extract("/tmp/broken.pdf")

    @patch("extractors.pdf_extractor.pdfplumber.open")
    def test_extract_all(self, mock_open):
        self._mock_pdf(mock_open, ["Conta: 1\nSALDO 1,00"])
        records = PDFFieldExtractor().extract_all(["/tmp/a.pdf", "/tmp/b.pdf"])
        self.assertEqual([r.file_name for r in records], ["a.pdf", "b.pdf"])


class TestClaudeFieldExtractor(unittest.TestCase):
    """Tests for ClaudeFieldExtractor with a fake client."""

    def setUp(self):
        handle, self.pdf_path = tempfile.mkstemp(suffix=".pdf")
        with os.fdopen(handle, "wb") as f:
            f.write(b"%PDF-1.4 fake statement")
        self.client = MagicMock()

    def tearDown(self):
        os.unlink(self.pdf_path)

    def _reply(self, text):
        self.client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(text=text)]
        )

    def test_extract_parses_json(self):
        """Test fields are read from a fenced JSON reply."""
        self._reply(
            '```json\n{"bankName": "Banco do Brasil", "accountNumber": "12292-0", '
            '"documentDate": "31/07/2025", "balance": "2.417.764,24"}\n```'
        )
        extractor = ClaudeFieldExtractor(api_key="", client=self.client)

        record = extractor.extract(self.pdf_path, file_name="extrato.pdf")

        self.assertEqual(record, ExtractedRecord(
            file_name="extrato.pdf",
            bank_name="Banco do Brasil",
            account_number="12292-0",
            document_date="31/07/2025",
            raw_balance_text="2.417.764,24",
        ))

    def test_request_contains_pdf_document(self):
        """Test the PDF is sent as a base64 document block."""
        self._reply('{"bankName": "", "accountNumber": "1", "documentDate": "", "balance": "1,00"}')
        ClaudeFieldExtractor(api_key="", client=self.client).extract(self.pdf_path)

        kwargs = self.client.messages.create.call_args.kwargs
        content = kwargs["messages"][0]["content"]
        self.assertEqual(content[0]["type"], "document")
        self.assertEqual(content[0]["source"]["media_type"], "application/pdf")
        self.assertEqual(base64.b64decode(content[0]["source"]["data"]), b"%PDF-1.4 fake statement")
        self.assertIn(Path(self.pdf_path).name, content[1]["text"])

    def test_null_fields_become_empty(self):
        self._reply('{"bankName": null, "accountNumber": "1", "balance": 10}')
        record = ClaudeFieldExtractor(api_key="", client=self.client).extract(self.pdf_path)
        self.assertEqual(record.bank_name, "")
        self.assertEqual(record.document_date, "")
        self.assertEqual(record.raw_balance_text, "10")

    def test_unparseable_reply(self):
        self._reply("Não consegui ler o documento.")
        with self.assertRaises(ExtractionError):
            ClaudeFieldExtractor(api_key="", client=self.client).extract(self.pdf_path)

    def test_no_api_key(self):
        """Test extraction without a client fails loudly."""
        extractor = ClaudeFieldExtractor(api_key="")
        self.assertFalse(extractor.is_available())
        with self.assertRaises(ExtractionError):
            extractor.extract(self.pdf_path)


class TestRecordTableLoader(unittest.TestCase):
    """Tests for CSV and XLSX record tables."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        for name in os.listdir(self.tmpdir):
            os.unlink(os.path.join(self.tmpdir, name))
        os.rmdir(self.tmpdir)

    def _write(self, name, content):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_csv_keeps_balance_text(self):
        """Test balances are loaded verbatim."""
        path = self._write("records.csv", (
            "fileName;bankName;accountNumber;documentDate;balance\n"
            "a.pdf;Banco X;12292-0;31/07/2025;2.417.764,24\n"
            "b.pdf;Banco X;12292-0;31/07/2025;R$ 2.417.764,24\n"
        ))
        records = RecordTableLoader(path).load()

        self.assertEqual(len(records), 2)
        self.assertEqual(records[0], ExtractedRecord(
            file_name="a.pdf",
            bank_name="Banco X",
            account_number="12292-0",
            document_date="31/07/2025",
            raw_balance_text="2.417.764,24",
        ))
        self.assertEqual(records[1].raw_balance_text, "R$ 2.417.764,24")

    def test_legacy_excel_rejected(self):
        path = self._write("records.xls", "conta;saldo\n111;1,00\n")
        with self.assertRaises(ExtractionError):
            RecordTableLoader(path).load()

    def test_longest_keyword_claims_column(self):
        """Test "Bank Account" maps to the account, not the bank."""
        path = self._write("contas.csv", (
            "Arquivo;Banco Emissor;Bank Account;Closing Balance Amount\n"
            "a.pdf;Banco X;12292-0;74.710,15\n"
        ))
        records = RecordTableLoader(path).load()

        self.assertEqual(records, [ExtractedRecord(
            file_name="a.pdf",
            bank_name="Banco X",
            account_number="12292-0",
            document_date="",
            raw_balance_text="74.710,15",
        )])

    def test_portuguese_headers_and_default_file_name(self):
        """Test Portuguese headers and generated file names."""
        path = self._write("contas.csv", (
            "conta;saldo\n"
            "111;1.000,00\n"
            ";\n"
            "111;1000,00\n"
        ))
        records = RecordTableLoader(path).load()

        self.assertEqual([r.file_name for r in records], ["contas.csv#row1", "contas.csv#row3"])
        self.assertEqual(records[1].raw_balance_text, "1000,00")

    def test_missing_required_column(self):
        path = self._write("bad.csv", "fileName;bankName\na.pdf;Banco X\n")
        with self.assertRaises(ExtractionError):
            RecordTableLoader(path).load()

    def test_xlsx(self):
        path = os.path.join(self.tmpdir, "records.xlsx")
        wb = Workbook()
        ws = wb.active
        ws.append(["File Name", "Bank", "Account Number", "Date", "Saldo Final"])
        ws.append(["x.pdf", "Itaú", "333", "30/06/2025", "200,00"])
        wb.save(path)

        records = RecordTableLoader(path).load()

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].file_name, "x.pdf")
        self.assertEqual(records[0].bank_name, "Itaú")
        self.assertEqual(records[0].account_number, "333")
        self.assertEqual(records[0].raw_balance_text, "200,00")


class TestExtractorHelpers(unittest.TestCase):
    """Tests for get_extractor and validation."""

    def test_get_extractor(self):
        self.assertIsInstance(get_extractor("pdf"), PDFFieldExtractor)
        self.assertIsInstance(get_extractor("CLAUDE", api_key=""), ClaudeFieldExtractor)

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            get_extractor("ocr")

    def test_validate_flags_missing_fields(self):
        records = [
            ExtractedRecord("a.pdf", "Banco X", "111", "31/07/2025", "1,00"),
            ExtractedRecord("b.pdf", "", " ", "", "R$"),
        ]
        issues = BaseExtractor.validate(records)
        self.assertEqual(
            sorted(issue.issue_type for issue in issues),
            ["missing_account", "missing_balance", "missing_bank", "missing_date"],
        )
        self.assertTrue(all(issue.file_name == "b.pdf" for issue in issues))


if __name__ == '__main__':
    unittest.main()
