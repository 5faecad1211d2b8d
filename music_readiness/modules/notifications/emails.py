from __future__ import annotations

from datetime import datetime

from music_readiness.core.config import settings
from music_readiness.modules.notifications.resend_client import EmailMessage
from music_readiness.modules.quiz.rubric import QuizVariant
from music_readiness.modules.quiz.variants import VARIANTS
from music_readiness.schemas.submission import SubmissionRecord


def results_url(submission_id: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/results/{submission_id}"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return 'Unknown'
    return value.strftime('%b %d, %Y %I:%M %p')


def _display_child(record: SubmissionRecord) -> str:
    return record.child_name or 'Your child'


def answer_lines(record: SubmissionRecord, variant: QuizVariant | None) -> list[str]:
    """Every answered choice question with its human label, in quiz order."""
    if variant is None:
        return [f'- {key}: {value}' for key, value in record.answers.items()]

    lines: list[str] = []
    for question in sorted(variant.questions, key=lambda item: item.step):
        if question.kind not in ('choice', 'multi'):
            continue
        value = record.answers.get(question.key)
        if value in (None, '', []):
            continue
        if isinstance(value, list):
            rendered = ', '.join(question.label(token) for token in value)
        else:
            rendered = question.label(value)
        lines.append(f'- {question.prompt} {rendered}')
    return lines


def build_lead_email(record: SubmissionRecord) -> EmailMessage:
    variant = VARIANTS.get(record.variant)
    child = record.child_name or 'Unnamed child'
    lines = [
        'New Music Readiness Score submission',
        '',
        f'Parent: {record.parent_name or "Not provided"}',
        f'Email: {record.email or "Not provided"}',
        f'Phone: {record.phone or "Not provided"}',
        f"Child's name: {child}",
    ]
    if record.child_age is not None:
        lines.append(f"Child's age: {record.child_age}")
    lines += [
        f'Submitted: {format_timestamp(record.completed_at or record.created_at)}',
        f'Source: {record.source}',
        '',
        f'Score: {record.score}/100 ({record.band_label})',
        f'Primary instrument: {record.primary_instrument}',
        f"Also consider: {', '.join(record.secondary_instruments or [])}",
        '',
        'Answers:',
        *answer_lines(record, variant),
        '',
        f'Results: {results_url(record.id)}',
    ]
    return EmailMessage(
        to=[str(settings.TEAM_EMAIL)],
        subject=f'New Lead: {child} scored {record.score}/100',
        text='\n'.join(lines),
        reply_to=[record.email] if record.email else [],
    )


def build_parent_email(record: SubmissionRecord) -> EmailMessage:
    child = _display_child(record)
    greeting = f'Hi {record.parent_name},' if record.parent_name else 'Hi there,'
    lines = [
        greeting,
        '',
        f"{child}'s Music Readiness Score is {record.score}/100: {record.band_label}.",
        '',
        record.band_description or '',
        '',
        f'Best instrument match: {record.primary_instrument}',
        f"Also worth trying: {', '.join(record.secondary_instruments or [])}",
        '',
        'Your first-week action plan:',
        *(f'{index}. {item}' for index, item in enumerate(record.action_plan or [], start=1)),
        '',
        f'See the full results: {results_url(record.id)}',
        f'Book a trial lesson: {settings.BOOKING_URL}',
    ]
    return EmailMessage(
        to=[record.email] if record.email else [],
        subject=f"{record.child_name or 'Your child'}'s Music Readiness Results Are In!",
        text='\n'.join(lines),
    )


def build_digest_email(partials: list[SubmissionRecord]) -> EmailMessage:
    count = len(partials)
    plural = 's' if count > 1 else ''
    lines = [
        f"{count} new lead{plural} started the Music Readiness Quiz but didn't finish.",
        '',
    ]
    for index, record in enumerate(partials, start=1):
        variant = VARIANTS.get(record.variant)
        total = variant.total_steps if variant is not None else '?'
        lines += [
            f'{index}. {record.parent_name or "Unknown"} <{record.email or "no email"}>',
            f'   Phone: {record.phone or "Not provided"}',
            f'   Progress: Step {record.last_step} of {total}',
            f'   Started: {format_timestamp(record.created_at)}',
        ]
    lines += ['', 'A quick follow-up email or call could help them finish the assessment.']
    return EmailMessage(
        to=[str(settings.TEAM_EMAIL)],
        subject=f'Daily Partial Quiz Digest - {count} New Lead{plural}',
        text='\n'.join(lines),
    )
