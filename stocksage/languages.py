"""Supported output languages."""

from pydantic import BaseModel


RTL_CODES = frozenset({"ar", "fa", "he", "ur"})
POPULAR_CODES = ("en", "es", "zh-Hans", "ar", "fr", "ru", "pt", "ja", "de")
DEFAULT_CODE = "en"


class Language(BaseModel):
    """An output language: native display name, translator code and locale."""

    name: str
    code: str
    locale: str

    model_config = {"frozen": True}

    @property
    def is_rtl(self) -> bool:
        return self.code in RTL_CODES


def _lang(name: str, code: str, locale: str = "") -> Language:
    return Language(name=name, code=code, locale=locale or code)


LANGUAGES: tuple[Language, ...] = (
    _lang("Afrikaans", "af"),
    _lang("Shqip", "sq"),
    _lang("አማርኛ", "am"),
    _lang("العربية", "ar"),
    _lang("Հայերեն", "hy"),
    _lang("অসমীয়া", "as"),
    _lang("Azərbaycan", "az"),
    _lang("বাংলা", "bn"),
    _lang("Bosanski", "bs"),
    _lang("Български", "bg"),
    _lang("中文", "zh-Hans", "zh"),
    _lang("中文繁體", "zh-Hant", "zh-TW"),
    _lang("Hrvatski", "hr"),
    _lang("Čeština", "cs"),
    _lang("Dansk", "da"),
    _lang("دری", "prs"),
    _lang("Nederlands", "nl"),
    _lang("English", "en"),
    _lang("Eesti", "et"),
    _lang("Suomi", "fi"),
    _lang("Français", "fr"),
    _lang("ქართული", "ka"),
    _lang("Deutsch", "de"),
    _lang("Ελληνικά", "el"),
    _lang("ગુજરાતી", "gu"),
    _lang("Kreyòl Ayisyen", "ht"),
    _lang("עברית", "he"),
    _lang("हिंदी", "hi"),
    _lang("Magyar", "hu"),
    _lang("Íslenska", "is"),
    _lang("Bahasa Indonesia", "id"),
    _lang("Gaeilge", "ga"),
    _lang("Italiano", "it"),
    _lang("日本語", "ja"),
    _lang("ಕನ್ನಡ", "kn"),
    _lang("Қазақ", "kk"),
    _lang("한국어", "ko"),
    _lang("Latviešu", "lv"),
    _lang("Lietuvių", "lt"),
    _lang("Bahasa Melayu", "ms"),
    _lang("മലയാളം", "ml"),
    _lang("Malti", "mt"),
    _lang("मराठी", "mr"),
    _lang("Norsk", "nb"),
    _lang("فارسی", "fa"),
    _lang("Polski", "pl"),
    _lang("Português", "pt"),
    _lang("Română", "ro"),
    _lang("Русский", "ru"),
    _lang("Српски", "sr"),
    _lang("Slovenčina", "sk"),
    _lang("Slovenščina", "sl"),
    _lang("Español", "es"),
    _lang("Kiswahili", "sw"),
    _lang("Svenska", "sv"),
    _lang("தமிழ்", "ta"),
    _lang("తెలుగు", "te"),
    _lang("ไทย", "th"),
    _lang("Türkçe", "tr"),
    _lang("Українська", "uk"),
    _lang("اردو", "ur"),
    _lang("Tiếng Việt", "vi"),
    _lang("Cymraeg", "cy"),
)

_BY_CODE = {language.code: language for language in LANGUAGES}
_BY_LOCALE = {language.locale: language for language in LANGUAGES}
LANGUAGE_CODES = tuple(_BY_CODE)


def default_language() -> Language:
    return _BY_CODE[DEFAULT_CODE]


def language_for(code: str) -> Language:
    """Look up a language by translator code, falling back to English."""
    return _BY_CODE.get(code, default_language())


def language_for_locale(locale: str) -> Language:
    """Look up a language by locale identifier, falling back to English."""
    return _BY_LOCALE.get(locale, default_language())


def is_rtl(code: str) -> bool:
    return code in RTL_CODES


def sorted_by_popularity(languages: tuple[Language, ...] = LANGUAGES) -> list[Language]:
    """Most requested languages first, the rest in catalog order."""
    rank = {code: i for i, code in enumerate(POPULAR_CODES)}
    return sorted(languages, key=lambda language: rank.get(language.code, len(rank)))
