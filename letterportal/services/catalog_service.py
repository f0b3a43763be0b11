"""
CSV import/export for the admin catalogs

Exports quote every cell and start with a header row. Imports skip the
header, upsert by natural key (letter type code, student ID, program code)
and report how many rows were imported or skipped.
"""

import csv
import io
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from flask import Response, current_app

from letterportal.models import db, LetterRequest, LetterType, Student, StudyProgram
from letterportal.utils.exceptions import ValidationError

LETTER_TYPE_HEADERS = ['Code', 'Name', 'Description', 'Addressee', 'Status']
STUDENT_HEADERS = ['Student ID', 'Name', 'Program', 'Email', 'Phone']
PROGRAM_HEADERS = ['Code', 'Name', 'Faculty', 'Active']
REQUEST_HEADERS = ['Reference Number', 'Name', 'Student ID', 'Program', 'Email', 'Phone',
                   'Letter Type', 'Purpose', 'Status', 'Date']

ACTIVE_LABEL = 'Active'
INACTIVE_LABEL = 'Inactive'


def write_csv(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if cell is None else cell for cell in row])
    return buffer.getvalue()


def read_csv_rows(content: str) -> Iterator[List[str]]:
    """Data rows with cells stripped; the header and blank lines are dropped"""
    reader = csv.reader(io.StringIO(content.lstrip('\ufeff')))
    next(reader, None)
    for row in reader:
        cells = [cell.strip() for cell in row]
        if any(cells):
            yield cells


def _cell(row: List[str], index: int) -> str:
    return row[index] if index < len(row) else ''


def _optional(value: str) -> Optional[str]:
    return value or None


def csv_response(content: str, basename: str) -> Response:
    filename = f"{basename}-{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        content,
        mimetype='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )


def decode_upload(data: bytes) -> str:
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded")


class CatalogService:
    """CSV exchange for letter types, students, study programs and requests"""

    @staticmethod
    def export_letter_types(letter_types: Optional[Iterable[LetterType]] = None) -> str:
        if letter_types is None:
            letter_types = LetterType.query.order_by(LetterType.code).all()
        return write_csv(LETTER_TYPE_HEADERS, (
            [item.code, item.name, item.description, item.addressee,
             ACTIVE_LABEL if item.is_active else INACTIVE_LABEL]
            for item in letter_types
        ))

    @staticmethod
    def import_letter_types(content: str) -> Dict[str, int]:
        """
        Upsert letter types by code

        Rows without a code or name are skipped. Any status other than
        Inactive marks the type active.
        """
        imported = skipped = 0
        for row in read_csv_rows(content):
            code, name = _cell(row, 0), _cell(row, 1)
            if not code or not name:
                skipped += 1
                continue

            letter_type = LetterType.query.filter_by(code=code).first()
            if letter_type is None:
                letter_type = LetterType(code=code)
                db.session.add(letter_type)
            letter_type.name = name
            letter_type.description = _optional(_cell(row, 2))
            letter_type.addressee = _optional(_cell(row, 3))
            letter_type.is_active = _cell(row, 4).lower() != INACTIVE_LABEL.lower()
            imported += 1

        db.session.commit()
        current_app.logger.info(f"Letter types imported: {imported}, skipped: {skipped}")
        return {'imported': imported, 'skipped': skipped}

    @staticmethod
    def export_students(students: Optional[Iterable[Student]] = None) -> str:
        if students is None:
            students = Student.query.order_by(Student.name).all()
        return write_csv(STUDENT_HEADERS, (
            [item.student_id, item.name, item.program, item.email, item.phone]
            for item in students
        ))

    @staticmethod
    def import_students(content: str) -> Dict[str, int]:
        """Upsert students by student ID; rows missing ID, name or email are skipped"""
        imported = skipped = 0
        for row in read_csv_rows(content):
            student_id, name, email = _cell(row, 0), _cell(row, 1), _cell(row, 3)
            if not student_id or not name or not email:
                skipped += 1
                continue

            student = Student.query.filter_by(student_id=student_id).first()
            if student is None:
                student = Student(student_id=student_id)
                db.session.add(student)
            student.name = name
            student.program = _cell(row, 2)
            student.email = email
            student.phone = _cell(row, 4)
            imported += 1

        db.session.commit()
        current_app.logger.info(f"Students imported: {imported}, skipped: {skipped}")
        return {'imported': imported, 'skipped': skipped}

    @staticmethod
    def export_programs(programs: Optional[Iterable[StudyProgram]] = None) -> str:
        if programs is None:
            programs = StudyProgram.query.order_by(StudyProgram.code).all()
        return write_csv(PROGRAM_HEADERS, (
            [item.code, item.name, item.faculty, 'Yes' if item.is_active else 'No']
            for item in programs
        ))

    @staticmethod
    def import_programs(content: str) -> Dict[str, int]:
        """Upsert study programs by upper-cased code"""
        imported = skipped = 0
        for row in read_csv_rows(content):
            code, name = _cell(row, 0).upper(), _cell(row, 1)
            if not code or not name:
                skipped += 1
                continue

            program = StudyProgram.query.filter_by(code=code).first()
            if program is None:
                program = StudyProgram(code=code)
                db.session.add(program)
            program.name = name
            program.faculty = _optional(_cell(row, 2))
            program.is_active = _cell(row, 3).lower() not in ('no', 'false', '0', INACTIVE_LABEL.lower())
            imported += 1

        db.session.commit()
        current_app.logger.info(f"Study programs imported: {imported}, skipped: {skipped}")
        return {'imported': imported, 'skipped': skipped}

    @staticmethod
    def export_requests(letter_requests: Iterable[LetterRequest]) -> str:
        rows = []
        for item in letter_requests:
            student = item.student
            rows.append([
                item.reference_number,
                student.name if student else '',
                student.student_id if student else '',
                student.program if student else '',
                student.email if student else '',
                student.phone if student else '',
                item.letter_type.name if item.letter_type else '',
                item.purpose,
                item.status,
                item.created_at.strftime('%Y-%m-%d %H:%M') if item.created_at else '',
            ])
        return write_csv(REQUEST_HEADERS, rows)
