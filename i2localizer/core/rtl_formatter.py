"""
RTL Formatter
=============

Prepares Persian/Arabic strings for Unity text renderers that draw glyphs
strictly left-to-right. Text is normalized to Persian letters, split into
RTL and non-RTL runs, and only the RTL runs are reversed so embedded Latin
words, numbers and placeholders keep their reading order.

Default output is the bare reversed text. Isolated presentation forms and a
RIGHT-TO-LEFT OVERRIDE prefix are opt-in through :class:`RtlOptions`.
"""

import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

ZWNJ = '\u200c'
ZWSP = '\u200b'
RLO = '\u202e'

RTL_CHAR_RE = re.compile('[\u0600-\u06ff\ufb50-\ufdff\ufe70-\ufeff]')
PERSIAN_CHAR_RE = re.compile('[\u0600-\u06ff]')
_SPACES_RE = re.compile(r'[\s\u200b\u200c]')

MI_PREFIX = '\u0645\u06cc'  # continuous-tense prefix

# Arabic variants -> Persian canonical letters
PERSIAN_NORMALIZATION = str.maketrans({
    'ك': 'ک',  # kaf
    'ي': 'ی',  # yeh
    'ى': 'ی',  # alef maksura
    'ة': 'ه',  # teh marbuta
    'أ': 'ا',  # alef with hamza above
    'إ': 'ا',  # alef with hamza below
    'ٱ': 'ا',  # alef wasla
    'ؤ': 'و',  # waw with hamza
})

# Isolated presentation forms
PRESENTATION_FORMS = str.maketrans({
    'آ': 'ﺁ',  # alef madda
    'ا': 'ﺍ',  # alef
    'ب': 'ﺏ',  # beh
    'پ': 'ﭖ',  # peh
    'ت': 'ﺕ',  # teh
    'ث': 'ﺙ',  # theh
    'ج': 'ﺝ',  # jeem
    'چ': 'ﭺ',  # tcheh
    'ح': 'ﺡ',  # hah
    'خ': 'ﺥ',  # khah
    'د': 'ﺩ',  # dal
    'ذ': 'ﺫ',  # thal
    'ر': 'ﺭ',  # reh
    'ز': 'ﺯ',  # zain
    'ژ': 'ﮊ',  # jeh
    'س': 'ﺱ',  # seen
    'ش': 'ﺵ',  # sheen
    'ص': 'ﺹ',  # sad
    'ض': 'ﺽ',  # dad
    'ط': 'ﻁ',  # tah
    'ظ': 'ﻅ',  # zah
    'ع': 'ﻉ',  # ain
    'غ': 'ﻍ',  # ghain
    'ف': 'ﻑ',  # feh
    'ق': 'ﻕ',  # qaf
    'ک': 'ﮎ',  # keheh
    'گ': 'ﮒ',  # gaf
    'ل': 'ﻝ',  # lam
    'م': 'ﻡ',  # meem
    'ن': 'ﻥ',  # noon
    'و': 'ﻭ',  # waw
    'ه': 'ﻩ',  # heh
    'ی': 'ﯼ',  # farsi yeh
})

PERSIAN_DIGITS = '۰۱۲۳۴۵۶۷۸۹'
_DIGIT_TABLE = str.maketrans('0123456789', PERSIAN_DIGITS)


@dataclass
class RtlOptions:
    presentation_forms: bool = False
    directional_override: bool = False
    strip_zwnj: bool = True
    persian_digits: bool = False


class TextRun(NamedTuple):
    is_rtl: bool
    text: str


def is_rtl_char(ch: str) -> bool:
    return bool(RTL_CHAR_RE.match(ch))


def contains_persian(text: str) -> bool:
    return bool(PERSIAN_CHAR_RE.search(text))


def normalize_persian(text: str) -> str:
    return text.translate(PERSIAN_NORMALIZATION)


def strip_zwnj(text: str) -> str:
    return text.replace(ZWNJ, '')


def convert_digits_to_persian(text: str) -> str:
    return text.translate(_DIGIT_TABLE)


def to_presentation_forms(text: str) -> str:
    return text.translate(PRESENTATION_FORMS)


def simple_reverse(text: str) -> str:
    """Reverse the whole string, embedded LTR tokens included."""
    return text[::-1]


def add_zwj(text: str) -> str:
    """Glue the ``می`` prefix with a ZWNJ and turn spaces into ZERO WIDTH SPACE."""
    return text.replace(MI_PREFIX + ' ', MI_PREFIX + ZWNJ).replace(' ', ZWSP)


def remove_all_spaces(text: str) -> str:
    """Drop whitespace, ZWNJ and ZWSP."""
    return _SPACES_RE.sub('', text)


def segment_runs(text: str) -> List[TextRun]:
    """Split ``text`` into maximal runs of RTL / non-RTL characters."""
    runs: List[TextRun] = []
    buffer: List[str] = []
    current: Optional[bool] = None
    for ch in text:
        rtl = is_rtl_char(ch)
        if current is not None and rtl != current:
            runs.append(TextRun(current, ''.join(buffer)))
            buffer = []
        buffer.append(ch)
        current = rtl
    if buffer:
        runs.append(TextRun(current, ''.join(buffer)))
    return runs


def reverse_rtl_runs(text: str, presentation_forms: bool = False) -> str:
    parts: List[str] = []
    for run in segment_runs(text):
        if not run.is_rtl:
            parts.append(run.text)
            continue
        reversed_run = run.text[::-1]
        if presentation_forms:
            reversed_run = to_presentation_forms(reversed_run)
        parts.append(reversed_run)
    return ''.join(parts)


def apply_rtl_formatting(text: str, options: Optional[RtlOptions] = None) -> str:
    """Normalize, segment and reverse RTL runs of ``text``."""
    options = options or RtlOptions()
    if not text:
        return text
    result = normalize_persian(text)
    if options.strip_zwnj:
        result = strip_zwnj(result)
    result = reverse_rtl_runs(result, presentation_forms=options.presentation_forms)
    # Persian digits are in the RTL range; convert only after reversal.
    if options.persian_digits:
        result = convert_digits_to_persian(result)
    if options.directional_override:
        result = RLO + result
    return result
