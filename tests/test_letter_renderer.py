from datetime import datetime
from types import SimpleNamespace

from letterportal.services.letter_renderer import (
    DefaultLayout, Letterhead, LetterRenderer, TemplatedLayout, format_letter_date,
    render_letter_pdf, replace_placeholders, select_layout, wrap_text
)

TODAY = datetime(2025, 3, 5, 9, 30)


def make_request(body_template=None, student=True, letter_type=True, purpose='Scholarship application'):
    return SimpleNamespace(
        reference_number='SUK-202503-0001',
        purpose=purpose,
        student=SimpleNamespace(
            name='Siti Rahma', student_id='2021001234', program='Informatics',
            email='siti@example.com', phone='081234567890'
        ) if student else None,
        letter_type=SimpleNamespace(
            name='Active Student Certificate', addressee='To the Dean',
            body_template=body_template
        ) if letter_type else None,
    )


def test_format_letter_date_locales():
    assert format_letter_date(TODAY, 'en') == '05 March 2025'
    assert format_letter_date(TODAY, 'id') == '05 Maret 2025'
    assert format_letter_date(TODAY, 'fr') == '05 March 2025'


def test_replace_placeholders():
    template = 'Name: {{name}} ({{student_id}}), {{program}}\nRef {{reference_number}} on {{date}}'

    result = replace_placeholders(template, make_request(), TODAY)

    assert result == 'Name: Siti Rahma (2021001234), Informatics\nRef SUK-202503-0001 on 05 March 2025'


def test_replace_placeholders_repeats_and_unknown_tokens():
    result = replace_placeholders('{{name}} / {{name}} / {{signature}}', make_request(), TODAY)
    assert result == 'Siti Rahma / Siti Rahma / {{signature}}'


def test_replace_placeholders_defaults():
    letter_request = make_request(student=False, letter_type=False)

    result = replace_placeholders('{{name}}|{{email}}|{{letter_type}}|{{addressee}}', letter_request, TODAY)

    assert result == '-|-|Certificate Letter|To Whom It May Concern'


def test_select_layout():
    assert select_layout(make_request('Hello {{name}}').letter_type) == TemplatedLayout('Hello {{name}}')
    assert isinstance(select_layout(make_request('   ').letter_type), DefaultLayout)
    assert isinstance(select_layout(None), DefaultLayout)


def test_default_layout_renders_single_page():
    rendered = LetterRenderer().render(make_request(), TODAY)

    assert rendered.pdf.startswith(b'%PDF')
    assert rendered.page_count == 1
    assert rendered.filename == 'SUK-202503-0001.pdf'


def test_long_template_breaks_pages():
    template = '\n'.join(f'Line {index} for {{{{name}}}}' for index in range(120))

    rendered = LetterRenderer(locale='id').render(make_request(template), TODAY)

    assert rendered.page_count >= 2


def test_long_purpose_wraps_without_error():
    rendered = LetterRenderer().render(make_request(purpose='word ' * 400), TODAY)
    assert rendered.page_count >= 1


def test_letterhead_from_config_ignores_unknown_and_empty():
    letterhead = Letterhead.from_config({
        'institution_name': 'STATE UNIVERSITY',
        'institution_city': 'Bandung, 40132',
        'signer_name': '',
        'logo': 'ignored',
    })

    assert letterhead.institution_name == 'STATE UNIVERSITY'
    assert letterhead.signing_city == 'Bandung'
    assert letterhead.signer_name == Letterhead().signer_name


def test_render_letter_pdf_uses_app_letterhead(app_ctx):
    pdf = render_letter_pdf(make_request(), TODAY)

    assert pdf.startswith(b'%PDF')


TOKEN_FREE_TEXT = (
    'This letter confirms enrolment for the {single} braced term.\n'
    'Fees are paid in full; no {{ spaced }} or {{}} tokens remain.\n'
    '\n'
    + 'A long closing paragraph that must wrap across several printed lines. ' * 6
)


def test_replace_placeholders_leaves_token_free_text_unchanged():
    assert replace_placeholders(TOKEN_FREE_TEXT, make_request(), TODAY) == TOKEN_FREE_TEXT


def test_templated_lines_wrap_without_losing_words():
    renderer = LetterRenderer()

    lines = renderer.templated_lines(TemplatedLayout(TOKEN_FREE_TEXT), make_request(), TODAY)

    assert len(lines) > len(TOKEN_FREE_TEXT.splitlines())
    assert ' '.join(lines).split() == TOKEN_FREE_TEXT.split()


def test_templated_lines_accept_windows_line_endings():
    lines = LetterRenderer().templated_lines(
        TemplatedLayout('Dear {{name}},\r\n\r\nRegards'), make_request(), TODAY
    )

    assert not any('\r' in line for line in lines)
    assert lines[0] == 'Dear Siti Rahma,'
    assert lines[-1] == 'Regards'


def test_wrap_text_fits_printable_width():
    assert wrap_text('') == ['']
    assert len(wrap_text('word ' * 200)) > 1
