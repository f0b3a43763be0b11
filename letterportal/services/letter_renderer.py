"""
Letter document renderer

Builds the official A4 letter for a request with reportlab's canvas API.
A letter type with a body template is rendered line by line after
placeholder substitution; otherwise the built-in certificate layout is used.
Geometry is in millimetres measured from the top of the page.
"""

import io
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from flask import current_app, send_file
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

MARGIN_MM = 25
LINE_HEIGHT_MM = 6
FOOTER_OFFSET_MM = 15
TEXT_WIDTH_MM = A4[0] / mm - 2 * MARGIN_MM
BODY_FONT_SIZE = 11

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'

DEFAULT_LETTER_TYPE_NAME = 'Certificate Letter'
DEFAULT_ADDRESSEE = 'To Whom It May Concern'
MISSING = '-'

MONTH_NAMES = {
    'en': ['January', 'February', 'March', 'April', 'May', 'June', 'July',
           'August', 'September', 'October', 'November', 'December'],
    'id': ['Januari', 'Februari', 'Maret', 'April', 'Mei', 'Juni', 'Juli',
           'Agustus', 'September', 'Oktober', 'November', 'Desember'],
}

PHRASES = {
    'en': {
        'in_place': 'in place',
        'title': 'CERTIFICATE LETTER',
        'number': 'Number',
        'undersigned': 'The undersigned:',
        'certifies': 'Hereby certifies that:',
        'name': 'Name',
        'position': 'Position',
        'staff_id': 'Staff ID',
        'student_id': 'Student ID',
        'program': 'Study Program',
        'email': 'Email',
        'phone': 'Phone',
        'purpose': 'is a registered student of {institution} who has requested a {letter_type} for the purpose of: {purpose}',
        'closing': 'This letter is issued to be used as appropriate.',
        'contact': 'Phone: {phone} | Email: {email}',
        'printed': 'Printed on: {timestamp}',
        'generated': 'This document was generated electronically',
    },
    'id': {
        'in_place': 'di Tempat',
        'title': 'SURAT KETERANGAN',
        'number': 'Nomor',
        'undersigned': 'Yang bertanda tangan di bawah ini:',
        'certifies': 'Dengan ini menerangkan bahwa:',
        'name': 'Nama',
        'position': 'Jabatan',
        'staff_id': 'NIP',
        'student_id': 'NIM',
        'program': 'Program Studi',
        'email': 'Email',
        'phone': 'No. HP',
        'purpose': 'Adalah benar mahasiswa {institution} yang mengajukan {letter_type} untuk keperluan: {purpose}',
        'closing': 'Demikian surat keterangan ini dibuat untuk dapat dipergunakan sebagaimana mestinya.',
        'contact': 'Telp: {phone} | Email: {email}',
        'printed': 'Dicetak pada: {timestamp}',
        'generated': 'Dokumen ini dihasilkan secara elektronik',
    },
}

PLACEHOLDER_PATTERN = re.compile(r'\{\{(\w+)\}\}')


@dataclass
class Letterhead:
    """Institution and signer details printed on every letter"""
    institution_name: str = 'SAMPLE UNIVERSITY'
    institution_address: str = '123 Education Street'
    institution_city: str = 'Education City, 12345'
    institution_phone: str = '(021) 1234567'
    institution_email: str = 'info@sampleuniversity.ac.id'
    signer_name: str = 'Dr. Ahmad Sulaiman, M.Pd.'
    signer_title: str = 'Head of Academic Administration'
    signer_id: str = '197001011995031001'

    @classmethod
    def from_config(cls, values: Optional[Mapping[str, Any]]) -> 'Letterhead':
        known = cls.__dataclass_fields__
        return cls(**{key: value for key, value in (values or {}).items() if key in known and value})

    @property
    def signing_city(self) -> str:
        """City name without the postal code"""
        return self.institution_city.split(',', 1)[0].strip()


@dataclass(frozen=True)
class TemplatedLayout:
    text: str


@dataclass(frozen=True)
class DefaultLayout:
    pass


Layout = Union[TemplatedLayout, DefaultLayout]


@dataclass
class RenderedLetter:
    pdf: bytes
    page_count: int
    filename: str


def normalize_locale(locale: Optional[str]) -> str:
    return locale if locale in MONTH_NAMES else 'en'


def format_letter_date(value: datetime, locale: str = 'en') -> str:
    """dd <Month> yyyy, e.g. 05 March 2025 / 05 Maret 2025"""
    months = MONTH_NAMES[normalize_locale(locale)]
    return f"{value.day:02d} {months[value.month - 1]} {value.year}"


def select_layout(letter_type) -> Layout:
    template = getattr(letter_type, 'body_template', None) if letter_type else None
    if template and template.strip():
        return TemplatedLayout(template)
    return DefaultLayout()


def placeholder_values(letter_request, today: datetime, locale: str = 'en') -> Dict[str, str]:
    student = letter_request.student
    letter_type = letter_request.letter_type
    return {
        'name': (student.name if student else None) or MISSING,
        'student_id': (student.student_id if student else None) or MISSING,
        'program': (student.program if student else None) or MISSING,
        'email': (student.email if student else None) or MISSING,
        'phone': (student.phone if student else None) or MISSING,
        'letter_type': (letter_type.name if letter_type else None) or DEFAULT_LETTER_TYPE_NAME,
        'addressee': (letter_type.addressee if letter_type else None) or DEFAULT_ADDRESSEE,
        'purpose': letter_request.purpose or MISSING,
        'date': format_letter_date(today, locale),
        'reference_number': letter_request.reference_number or MISSING,
    }


def replace_placeholders(template: str, letter_request, today: Optional[datetime] = None,
                         locale: str = 'en') -> str:
    """
    Substitute {{token}} placeholders with request data

    Values are inserted verbatim. Unknown tokens are left as they are.
    """
    values = placeholder_values(letter_request, today or datetime.now(), locale)

    def substitute(match):
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def wrap_text(value: str, font_name: str = FONT, font_size: float = BODY_FONT_SIZE,
              width_mm: float = TEXT_WIDTH_MM) -> List[str]:
    """Split text into lines that fit the printable width"""
    return simpleSplit(value, font_name, font_size, width_mm * mm) or ['']


class _PageWriter:
    """Canvas wrapper that tracks the cursor and breaks pages"""

    def __init__(self, pdf: canvas.Canvas, footer):
        self.pdf = pdf
        self.width_mm = A4[0] / mm
        self.height_mm = A4[1] / mm
        self.text_width_mm = TEXT_WIDTH_MM
        self.y = 20.0
        self.pages = 1
        self._footer = footer
        self._font = (FONT, 10)

    def set_font(self, name: str, size: float) -> None:
        self._font = (name, size)
        self.pdf.setFont(name, size)

    def advance(self, delta: float) -> None:
        self.y += delta
        if self.y > self.height_mm - MARGIN_MM:
            self.new_page()

    def new_page(self) -> None:
        self._footer(self)
        self.pdf.showPage()
        self.pages += 1
        self.y = MARGIN_MM
        self.pdf.setFont(*self._font)

    def _baseline(self) -> float:
        return (self.height_mm - self.y) * mm

    def text(self, value: str, x_mm: float = MARGIN_MM) -> None:
        self.pdf.drawString(x_mm * mm, self._baseline(), value)

    def centered(self, value: str) -> None:
        self.pdf.drawCentredString(self.width_mm / 2 * mm, self._baseline(), value)

    def wrap(self, value: str) -> List[str]:
        name, size = self._font
        return wrap_text(value, name, size, self.text_width_mm)

    def paragraph(self, value: str) -> None:
        """Write wrapped text at the cursor, one line height per line"""
        for line in self.wrap(value):
            self.text(line)
            self.advance(LINE_HEIGHT_MM)

    def rule(self, y_mm: float, width: float) -> None:
        self.pdf.setLineWidth(width)
        y = (self.height_mm - y_mm) * mm
        self.pdf.line(MARGIN_MM * mm, y, (self.width_mm - MARGIN_MM) * mm, y)


class LetterRenderer:
    """Renders LetterRequest rows into PDF letters"""

    def __init__(self, letterhead: Optional[Letterhead] = None, locale: str = 'en'):
        self.letterhead = letterhead or Letterhead()
        self.locale = normalize_locale(locale)
        self.phrases = PHRASES[self.locale]

    @classmethod
    def from_config(cls, config) -> 'LetterRenderer':
        return cls(Letterhead.from_config(config.get('LETTERHEAD')), config.get('LETTER_LOCALE', 'en'))

    def render(self, letter_request, now: Optional[datetime] = None) -> RenderedLetter:
        """
        Render one request

        Args:
            letter_request: LetterRequest with student and letter_type loaded
            now: Date printed on the letter, defaults to the current time

        Returns:
            RenderedLetter with the PDF bytes
        """
        now = now or datetime.now()
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"{self.phrases['title']} {letter_request.reference_number}")
        pdf.setAuthor(self.letterhead.institution_name)

        writer = _PageWriter(pdf, lambda page: self._draw_footer(page, now))
        self._draw_head(writer, letter_request)

        layout = select_layout(letter_request.letter_type)
        if isinstance(layout, TemplatedLayout):
            self._draw_templated(writer, layout, letter_request, now)
        else:
            self._draw_default(writer, letter_request)

        self._draw_signature(writer, now)
        self._draw_footer(writer, now)
        pdf.showPage()
        pdf.save()

        return RenderedLetter(
            pdf=buffer.getvalue(),
            page_count=writer.pages,
            filename=f"{letter_request.reference_number}.pdf",
        )

    def _draw_head(self, writer: _PageWriter, letter_request) -> None:
        head = self.letterhead
        writer.set_font(FONT_BOLD, 14)
        writer.centered(head.institution_name)

        writer.advance(7)
        writer.set_font(FONT, 10)
        writer.centered(head.institution_address)
        writer.advance(5)
        writer.centered(head.institution_city)
        writer.advance(5)
        writer.centered(self.phrases['contact'].format(phone=head.institution_phone,
                                                       email=head.institution_email))

        writer.advance(5)
        writer.rule(writer.y, 1)
        writer.rule(writer.y + 2, 0.5)

        writer.advance(15)
        letter_type = letter_request.letter_type
        writer.text((letter_type.addressee if letter_type else None) or DEFAULT_ADDRESSEE)
        writer.advance(5)
        writer.text(self.phrases['in_place'])

        writer.advance(15)
        writer.set_font(FONT_BOLD, 12)
        writer.centered(self.phrases['title'])
        writer.advance(7)
        writer.set_font(FONT, 10)
        writer.centered(f"{self.phrases['number']}: {letter_request.reference_number}")

    def _draw_templated(self, writer: _PageWriter, layout: TemplatedLayout, letter_request,
                        now: datetime) -> None:
        writer.advance(15)
        writer.set_font(FONT, BODY_FONT_SIZE)
        for line in self.templated_lines(layout, letter_request, now):
            writer.text(line)
            writer.advance(LINE_HEIGHT_MM)

    def templated_lines(self, layout: TemplatedLayout, letter_request, now: datetime) -> List[str]:
        """Template body after substitution, wrapped to the printable width"""
        body = replace_placeholders(layout.text, letter_request, now, self.locale)
        lines = []
        for line in body.splitlines() or ['']:
            lines.extend(wrap_text(line or ' '))
        return lines

    def _draw_fields(self, writer: _PageWriter, fields) -> None:
        writer.set_font(FONT, 10)
        for label, value in fields:
            writer.text(label, MARGIN_MM + 10)
            writer.text(':', MARGIN_MM + 45)
            writer.text(value, MARGIN_MM + 50)
            writer.advance(LINE_HEIGHT_MM)

    def _draw_default(self, writer: _PageWriter, letter_request) -> None:
        phrases = self.phrases
        head = self.letterhead
        student = letter_request.student
        letter_type = letter_request.letter_type

        writer.advance(15)
        writer.set_font(FONT, 11)
        writer.text(phrases['undersigned'])
        writer.advance(10)
        self._draw_fields(writer, [
            (phrases['name'], head.signer_name),
            (phrases['position'], head.signer_title),
            (phrases['staff_id'], head.signer_id),
        ])

        writer.advance(8)
        writer.set_font(FONT, 11)
        writer.text(phrases['certifies'])
        writer.advance(10)
        self._draw_fields(writer, [
            (phrases['name'], (student.name if student else None) or MISSING),
            (phrases['student_id'], (student.student_id if student else None) or MISSING),
            (phrases['program'], (student.program if student else None) or MISSING),
            (phrases['email'], (student.email if student else None) or MISSING),
            (phrases['phone'], (student.phone if student else None) or MISSING),
        ])

        writer.advance(10)
        writer.set_font(FONT, 11)
        writer.paragraph(phrases['purpose'].format(
            institution=head.institution_name,
            letter_type=(letter_type.name if letter_type else None) or DEFAULT_LETTER_TYPE_NAME,
            purpose=letter_request.purpose or MISSING,
        ))
        writer.advance(10)
        writer.paragraph(phrases['closing'])

    def _draw_signature(self, writer: _PageWriter, now: datetime) -> None:
        head = self.letterhead
        sign_x = writer.width_mm - MARGIN_MM - 70

        writer.advance(15)
        writer.set_font(FONT, 11)
        writer.text(f"{head.signing_city}, {format_letter_date(now, self.locale)}", sign_x)
        writer.advance(7)
        writer.text(head.signer_title, sign_x)
        writer.advance(30)
        writer.set_font(FONT_BOLD, 11)
        writer.text(head.signer_name, sign_x)
        writer.advance(5)
        writer.set_font(FONT, 11)
        writer.text(f"{self.phrases['staff_id']}. {head.signer_id}", sign_x)

    def _draw_footer(self, writer: _PageWriter, now: datetime) -> None:
        pdf = writer.pdf
        y = (FOOTER_OFFSET_MM) * mm
        pdf.saveState()
        pdf.setFont(FONT, 8)
        pdf.setFillColorRGB(0.5, 0.5, 0.5)
        pdf.drawString(MARGIN_MM * mm, y,
                       self.phrases['printed'].format(timestamp=now.strftime('%d/%m/%Y %H:%M')))
        pdf.drawRightString((writer.width_mm - MARGIN_MM) * mm, y, self.phrases['generated'])
        pdf.restoreState()


def render_letter(letter_request, now: Optional[datetime] = None) -> RenderedLetter:
    """Render with the current application's letterhead and locale"""
    return LetterRenderer.from_config(current_app.config).render(letter_request, now)


def render_letter_pdf(letter_request, now: Optional[datetime] = None) -> bytes:
    return render_letter(letter_request, now).pdf


def letter_download_response(rendered: RenderedLetter):
    return send_file(
        io.BytesIO(rendered.pdf),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=rendered.filename
    )
