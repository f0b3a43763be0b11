#!/usr/bin/env python3
"""
Seed default letter types and study programs

Existing rows (matched by code) are left untouched, so the script can be
run repeatedly.
"""

import sys

from letterportal import create_app
from letterportal.models import db, LetterType, StudyProgram

DEFAULT_LETTER_TYPES = [
    {
        'code': 'SKAK',
        'name': 'Active Student Certificate',
        'description': 'Confirms that the student is currently enrolled',
        'addressee': 'To Whom It May Concern',
        'body_template': None,
    },
    {
        'code': 'SRK',
        'name': 'Recommendation Letter',
        'description': 'Recommendation for scholarships and exchange programs',
        'addressee': 'To the Selection Committee',
        'body_template': None,
    },
    {
        'code': 'SIP',
        'name': 'Research Permit',
        'description': 'Permit for thesis research at an external institution',
        'addressee': 'To the Head of the Institution',
        'body_template': (
            "We hereby request permission for our student to conduct research at your institution.\n"
            "\n"
            "Name: {{name}}\n"
            "Student ID: {{student_id}}\n"
            "Study Program: {{program}}\n"
            "\n"
            "Research purpose: {{purpose}}\n"
            "\n"
            "Thank you for your cooperation."
        ),
    },
    {
        'code': 'SPM',
        'name': 'Internship Application Letter',
        'description': 'Introduces the student to an internship provider',
        'addressee': 'To the Human Resources Manager',
        'body_template': None,
    },
]

DEFAULT_PROGRAMS = [
    {'code': 'IF', 'name': 'Informatics', 'faculty': 'Faculty of Engineering'},
    {'code': 'SI', 'name': 'Information Systems', 'faculty': 'Faculty of Engineering'},
    {'code': 'MN', 'name': 'Management', 'faculty': 'Faculty of Economics and Business'},
    {'code': 'AK', 'name': 'Accounting', 'faculty': 'Faculty of Economics and Business'},
    {'code': 'PBI', 'name': 'English Education', 'faculty': 'Faculty of Education'},
]


def seed():
    created_types = created_programs = 0

    for values in DEFAULT_LETTER_TYPES:
        if not LetterType.query.filter_by(code=values['code']).first():
            db.session.add(LetterType(is_active=True, **values))
            created_types += 1

    for values in DEFAULT_PROGRAMS:
        if not StudyProgram.query.filter_by(code=values['code']).first():
            db.session.add(StudyProgram(is_active=True, **values))
            created_programs += 1

    db.session.commit()
    return created_types, created_programs


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        try:
            types_added, programs_added = seed()
        except Exception as e:
            db.session.rollback()
            print(f"❌ Seeding failed: {e}")
            sys.exit(1)
    print(f"✅ Letter types added: {types_added}")
    print(f"✅ Study programs added: {programs_added}")
