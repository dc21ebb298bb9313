#!/usr/bin/env python3
"""
Test cases for the command line interface.
"""

import json
import logging
import os
import tempfile
import unittest
import sys
from pathlib import Path
from unittest.mock import patch

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from click.testing import CliRunner

from invoice_table_parser import ocr_engine
from invoice_table_parser.cli import cli

SAMPLE_TEXT = "\n".join([
    "품명\t규격\t수량\t단가\t공급가액",
    "배\t2kg\t3\t4,000\t12,000",
    "5,000\t10,000",
    "사과\t1kg\t2",
    "귤\t1.5kg\t1\t9,000\t9,000",
    "합계\t31,000",
    "인수자\t김철수",
])


class TestCLI(unittest.TestCase):
    """Test cases for the click commands."""

    def setUp(self):
        self.runner = CliRunner()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.text_path = self._write('ocr.txt', SAMPLE_TEXT)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def _load(self, path):
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def test_parse_to_file(self):
        output = os.path.join(self.tmpdir.name, 'out.json')
        result = self.runner.invoke(cli, ['parse', self.text_path, '-o', output])
        self.assertEqual(result.exit_code, 0, result.output)
        data = self._load(output)
        self.assertEqual([item['item'] for item in data['parsedItems']], ['배', '사과', '귤'])
        self.assertNotIn('diagnostics', data)

    def test_parse_with_diagnostics(self):
        output = os.path.join(self.tmpdir.name, 'out.json')
        result = self.runner.invoke(cli, ['parse', self.text_path, '-o', output, '--diagnostics'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self._load(output)['diagnostics'], [])

    def test_parse_from_stdin(self):
        result = self.runner.invoke(cli, ['parse', '-'], input=SAMPLE_TEXT)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"supplyAmount": 10000', result.output)

    def test_parse_with_bad_config(self):
        config_path = self._write('template.yaml', "header_keyword: 단가\n")
        result = self.runner.invoke(cli, ['parse', self.text_path, '--config', config_path])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Unknown template config keys', result.output)

    def test_parse_missing_text_file(self):
        result = self.runner.invoke(cli, ['parse', os.path.join(self.tmpdir.name, 'absent.txt')])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('Could not read OCR text', result.output)

    def test_verbose_flag_on_command_and_group(self):
        root = logging.getLogger()
        self.addCleanup(root.setLevel, root.level)
        output = os.path.join(self.tmpdir.name, 'out.json')
        for args in (['parse', self.text_path, '-v', '-o', output], ['-v', 'parse', self.text_path, '-o', output]):
            with self.subTest(args=args):
                root.setLevel(logging.WARNING)
                result = self.runner.invoke(cli, args)
                self.assertEqual(result.exit_code, 0, result.output)
                self.assertEqual(root.level, logging.DEBUG)

    def test_payload(self):
        output = os.path.join(self.tmpdir.name, 'payload.json')
        result = self.runner.invoke(cli, ['payload', self.text_path, '-o', output])
        self.assertEqual(result.exit_code, 0, result.output)
        payload = self._load(output)
        self.assertEqual(payload['vatCalculationExample']['formula'], 'VAT = ceil(supplyAmount * 0.1)')
        self.assertEqual(payload['schemaValidation']['validCount'], 3)

    def test_table(self):
        result = self.runner.invoke(cli, ['table', self.text_path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('Parsed items (3)', result.output)

    def test_image(self):
        image_path = self._write('invoice.jpg', 'placeholder')
        output = os.path.join(self.tmpdir.name, 'out.json')
        with patch.object(ocr_engine.OCREngine, 'extract_text', return_value=SAMPLE_TEXT) as extract:
            result = self.runner.invoke(cli, ['image', image_path, '-o', output, '--no-resize'])
        self.assertEqual(result.exit_code, 0, result.output)
        extract.assert_called_once_with(image_path)
        self.assertEqual(len(self._load(output)['parsedItems']), 3)


if __name__ == '__main__':
    unittest.main()
