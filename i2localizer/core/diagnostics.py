"""Coverage reporting for extraction/substitution runs.

Collects per-file counts while dumps are processed and emits a JSON report.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass
class FileReport:
    file_path: str
    extracted: int = 0
    without_value: int = 0
    translated: int = 0
    written: int = 0
    untranslated: List[str] = field(default_factory=list)


@dataclass
class DiagnosticReport:
    target_language: str = ''
    language_index: int = 0
    files: Dict[str, FileReport] = field(default_factory=dict)

    def _file(self, file_path: str) -> FileReport:
        fr = self.files.get(file_path)
        if not fr:
            fr = FileReport(file_path=file_path)
            self.files[file_path] = fr
        return fr

    def record_extraction(self, file_path: str, records: Iterable) -> None:
        fr = self._file(file_path)
        for record in records:
            fr.extracted += 1
            if record.data_line_index is None:
                fr.without_value += 1

    def record_substitution(self, file_path: str, records: Iterable, translations: Mapping[str, str], written: int) -> None:
        fr = self._file(file_path)
        for record in records:
            if translations.get(record.term):
                fr.translated += 1
            elif record.data_line_index is not None:
                fr.untranslated.append(record.term)
        fr.written += written

    def totals(self) -> Dict[str, int]:
        return {
            'extracted': sum(f.extracted for f in self.files.values()),
            'without_value': sum(f.without_value for f in self.files.values()),
            'translated': sum(f.translated for f in self.files.values()),
            'written': sum(f.written for f in self.files.values()),
            'untranslated': sum(len(f.untranslated) for f in self.files.values()),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target_language': self.target_language,
            'language_index': self.language_index,
            'totals': self.totals(),
            'files': {p: {
                'extracted': fr.extracted,
                'without_value': fr.without_value,
                'translated': fr.translated,
                'written': fr.written,
                'untranslated': fr.untranslated,
            } for p, fr in self.files.items()}
        }

    def write(self, path: str) -> Optional[Path]:
        p = Path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding='utf-8')
            return p
        except OSError as e:
            logging.getLogger(__name__).warning(f"Could not write report {p}: {e}")
            return None
