"""
Output Formatter
===============

Formats extracted records and their translations into Unity-style text,
CSV, JSON, Gettext PO and XLIFF 1.2, and groups records by category.
"""

import json
import logging
import zipfile
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import polib
from lxml import etree

from .line_model import escape_value
from .parser import Record
from .rtl_formatter import RtlOptions, apply_rtl_formatting

DEFAULT_CATEGORY = "Misc"

# First matching rule wins
CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Menu", ("menu", "button")),
    ("Settings", ("setting", "option")),
    ("Tutorial", ("tutorial", "help")),
    ("Gameplay", ("game", "play", "level")),
)

EXPORT_FORMATS = ('txt', 'csv', 'json', 'po', 'xliff')

XLIFF_NS = 'urn:oasis:names:tc:xliff:document:1.2'


def infer_category(term: str) -> str:
    lowered = term.lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def _xliff_tag(name: str) -> str:
    return f"{{{XLIFF_NS}}}{name}"


def escape_csv_field(text: str) -> str:
    if any(ch in text for ch in ('"', ',', '\n')):
        return '"' + text.replace('"', '""') + '"'
    return text


def generate_output_file_name(file_name: str, suffix: str = "translated", extension: Optional[str] = None) -> str:
    """``I2Languages.txt`` -> ``I2Languages_translated.txt``."""
    path = Path(file_name)
    ext = extension if extension is not None else (path.suffix or '.txt')
    if ext and not ext.startswith('.'):
        ext = '.' + ext
    return f"{path.stem}_{suffix}{ext}"


class UnityOutputFormatter:
    """Serializes records and translations into export formats."""

    def __init__(self, source_language: str = "en", target_language: str = "fa"):
        self.logger = logging.getLogger(__name__)
        self.source_language = source_language
        self.target_language = target_language

    def to_unity_txt(self,
                     records: Iterable[Record],
                     translations: Mapping[str, str],
                     rtl_options: Optional[RtlOptions] = None,
                     annotate_source: bool = False) -> str:
        """Dump-shaped text with one item per record.

        Untranslated records keep their original text.
        """
        blocks = []
        for idx, record in enumerate(records):
            value = translations.get(record.term) or record.original_text
            if rtl_options is not None:
                value = apply_rtl_formatting(value, rtl_options)
            block = (
                f"[{idx}]\n"
                f"0 TermData data\n"
                f"  1 string Term = \"{record.term}\"\n"
                f"[0]\n"
                f"  1 string data = \"{escape_value(value)}\"\n"
            )
            if annotate_source:
                block += f"EN: {record.original_text}\n"
            blocks.append(block)
        return "\n".join(blocks)

    def to_csv(self, records: Iterable[Record], translations: Mapping[str, str]) -> str:
        rows = ["Term,Original Text,Translation"]
        for record in records:
            rows.append(",".join((
                escape_csv_field(record.term),
                escape_csv_field(record.original_text),
                escape_csv_field(translations.get(record.term, "")),
            )))
        return "\n".join(rows)

    def to_json(self, records: Iterable[Record], translations: Mapping[str, str]) -> str:
        data = [
            {
                'term': record.term,
                'originalText': record.original_text,
                'translation': translations.get(record.term, ""),
            }
            for record in records
        ]
        return json.dumps(data, ensure_ascii=False, indent=2)

    def to_po(self, records: Iterable[Record], translations: Mapping[str, str]) -> str:
        """Gettext catalog; the term is both the reference and the msgctxt."""
        po = polib.POFile()
        po.metadata = {
            'Content-Type': 'text/plain; charset=UTF-8',
            'Content-Transfer-Encoding': '8bit',
            'Language': self.target_language,
        }
        for record in records:
            po.append(polib.POEntry(
                msgctxt=record.term,
                msgid=record.original_text,
                msgstr=translations.get(record.term, ''),
                occurrences=[(record.term, '')],
            ))
        return str(po)

    def to_xliff(self, records: Iterable[Record], translations: Mapping[str, str]) -> str:
        root = etree.Element(_xliff_tag('xliff'), nsmap={None: XLIFF_NS}, version='1.2')
        file_elem = etree.SubElement(root, _xliff_tag('file'), original='unity', datatype='plaintext')
        file_elem.set('source-language', self.source_language)
        file_elem.set('target-language', self.target_language)
        body = etree.SubElement(file_elem, _xliff_tag('body'))
        for record in records:
            unit = etree.SubElement(body, _xliff_tag('trans-unit'), id=record.term)
            etree.SubElement(unit, _xliff_tag('source')).text = record.original_text
            etree.SubElement(unit, _xliff_tag('target')).text = translations.get(record.term, '')
        xml = etree.tostring(root, pretty_print=True, xml_declaration=True, encoding='UTF-8')
        return xml.decode('utf-8')

    def export(self, fmt: str, records: Iterable[Record], translations: Mapping[str, str]) -> str:
        fmt = fmt.lower()
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        return getattr(self, f"to_{'unity_txt' if fmt == 'txt' else fmt}")(list(records), translations)

    def group_by_category(self, records: Iterable[Record]) -> Dict[str, List[Record]]:
        groups: Dict[str, List[Record]] = OrderedDict()
        for record in records:
            groups.setdefault(infer_category(record.term), []).append(record)
        return groups

    def categorized_files(self,
                          records: Iterable[Record],
                          translations: Mapping[str, str],
                          rtl_options: Optional[RtlOptions] = None) -> Dict[str, str]:
        """One Unity-style text per category, keyed ``"<Category>.txt"``."""
        files = OrderedDict()
        for category, group in self.group_by_category(records).items():
            files[f"{category}.txt"] = self.to_unity_txt(group, translations, rtl_options)
        self.logger.info(f"Grouped records into {len(files)} category files")
        return files

    def bundle_files(self, files: Mapping[str, str], archive_path: Path) -> Path:
        """Write ``files`` (name -> content) into a zip archive."""
        archive_path = Path(archive_path)
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in files.items():
                archive.writestr(name, content)
        self.logger.info(f"Bundled {len(files)} files into {archive_path}")
        return archive_path

    def save_output(self, content: str, output_path: Path) -> bool:
        """Save exported content as UTF-8 with LF newlines."""
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8', newline='\n') as f:
                f.write(content)
            self.logger.info(f"Saved output: {output_path}")
            return True
        except OSError as e:
            self.logger.error(f"Error saving output {output_path}: {e}")
            return False
