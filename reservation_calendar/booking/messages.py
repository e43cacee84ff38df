# Localized captions for the calendar page and the reservation form
from datetime import date

DEFAULT_LOCALE = "ja"

CAPTIONS = {
    "ja": {
        "page_title": "「予約日時」の選択",
        "previous": "前へ",
        "today": "今日",
        "next": "次へ",
        "month": "月",
        "week": "週",
        "form_title": "予約フォーム",
        "date": "予約日",
        "name": "お名前",
        "email": "メールアドレス",
        "phone": "電話番号",
        "cancel": "キャンセル",
        "submit": "予約する",
        "completed": "予約が完了しました！",
        "unavailable": "予約不可",
        "available": "予約可",
        "form_closed": "予約フォームは閉じられています。もう一度日付を選択してください。",
        "invalid_date": "日付が正しくありません。",
        "not_found": "ページが見つかりません。",
        "availability_reset": "予約状況を再作成しました。",
    },
    "en": {
        "page_title": "Choose a reservation date",
        "previous": "Back",
        "today": "Today",
        "next": "Next",
        "month": "Month",
        "week": "Week",
        "form_title": "Reservation form",
        "date": "Date",
        "name": "Name",
        "email": "Email",
        "phone": "Phone",
        "cancel": "Cancel",
        "submit": "Reserve",
        "completed": "Your reservation is complete!",
        "unavailable": "Unavailable",
        "available": "Available",
        "form_closed": "The reservation form is no longer open. Please select a day again.",
        "invalid_date": "Invalid date.",
        "not_found": "Page not found.",
        "availability_reset": "Availability regenerated.",
    },
}

# Form validation messages, formatted with the field label and limits
VALIDATION_MESSAGES = {
    "ja": {
        "required": "{label}を入力してください。",
        "too_long": "{label}は{max}文字以内で入力してください。",
        "disallowed_characters": "{label}に使用できない文字が含まれています。",
        "invalid_email": "メールアドレスの形式が正しくありません。",
        "invalid_phone": "電話番号の形式が正しくありません。",
    },
    "en": {
        "required": "{label} is required.",
        "too_long": "{label} is too long. Max {max} characters.",
        "disallowed_characters": "{label} contains disallowed characters.",
        "invalid_email": "Invalid email format.",
        "invalid_phone": "Phone number is not valid.",
    },
}

WEEKDAY_ABBREVIATIONS = {
    "ja": ["月", "火", "水", "木", "金", "土", "日"],
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
}


def captions(locale: str) -> dict[str, str]:
    return CAPTIONS.get(locale, CAPTIONS[DEFAULT_LOCALE])


def validation_message(key: str, field: str, locale: str, **params) -> str:
    templates = VALIDATION_MESSAGES.get(locale, VALIDATION_MESSAGES[DEFAULT_LOCALE])
    return templates[key].format(label=captions(locale)[field], **params)


def weekday_names(locale: str) -> list[str]:
    """Weekday headers starting on Sunday, matching the calendar grid."""
    names = WEEKDAY_ABBREVIATIONS.get(locale, WEEKDAY_ABBREVIATIONS[DEFAULT_LOCALE])
    return names[-1:] + names[:-1]


def format_bound_date(day: date, locale: str) -> str:
    weekday = WEEKDAY_ABBREVIATIONS.get(locale, WEEKDAY_ABBREVIATIONS[DEFAULT_LOCALE])[day.weekday()]
    if locale == "en":
        return f"{day.isoformat()} ({weekday})"
    return f"{day.year}年{day.month:02d}月{day.day:02d}日 ({weekday})"


def format_title(day: date, view: str, locale: str) -> str:
    if locale == "en":
        return day.strftime("%B %Y") if view == "month" else f"Week of {day.isoformat()}"
    if view == "month":
        return f"{day.year}年{day.month}月"
    return f"{day.year}年{day.month}月{day.day}日の週"
