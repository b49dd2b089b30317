"""Catalogue des modèles de prompts proposés comme contenu.

Chaque modèle peut cibler des titres d'intérêts ou des clusters; un modèle sans ciblage est
proposé à tout le monde. Le texte est rendu pour l'intérêt principal de la requête.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from interestmap.domain.content_types import Interest, Mode

MAX_LISTED_INTERESTS = 3


@dataclass
class PromptContext:
    """Contexte de rendu d'un prompt."""

    mode: Mode
    interests: list[Interest]
    primary: Interest | None = None


@dataclass
class PromptTemplate:
    """Modèle de prompt et son ciblage."""

    id: str
    title: str
    description: str
    build: Callable[[PromptContext], str]
    tags: list[str] = field(default_factory=list)
    clusters: list[str] = field(default_factory=list)
    interest_titles: list[str] = field(default_factory=list)


def _interest_list(ctx: PromptContext) -> str:
    titles = [i.title.strip() for i in ctx.interests if i.title and i.title.strip()]
    if not titles:
        return "моим интересам"
    if len(titles) == 1:
        return f"теме “{titles[0]}”"
    if len(titles) == 2:  # noqa: PLR2004
        return f"темам “{titles[0]}” и “{titles[1]}”"
    more = " и другим" if len(titles) > MAX_LISTED_INTERESTS else ""
    return f"темам: {', '.join(titles[:MAX_LISTED_INTERESTS])}{more}"


def _mode_hint(ctx: PromptContext) -> str:
    if ctx.mode == "selected":
        return "Работай только с выбранной темой, не уходи в сторону."
    return "Учитывай все перечисленные интересы и показывай общий баланс."


def _topic(ctx: PromptContext) -> str:
    title = ctx.primary.title.strip() if ctx.primary and ctx.primary.title else ""
    return title or "выбранной теме"


PROMPT_TEMPLATES: list[PromptTemplate] = [
    PromptTemplate(
        id="learn:path",
        title="Сделай план изучения",
        description="4-недельный маршрут с целями, теория+практика и контрольные точки.",
        tags=["learning", "structure"],
        build=lambda ctx: " ".join(
            [
                f"Ты методолог обучения. Составь 4-недельный маршрут по теме “{_topic(ctx)}”.",
                _mode_hint(ctx),
                "Каждую неделю дай цель, 3–5 шагов и критерий проверки. "
                "Добавь 2–3 мини-практики на неделю.",
                "Покажи план в виде списка по неделям, коротко и по делу.",
            ]
        ),
    ),
    PromptTemplate(
        id="summary:distill",
        title="Выжми конспект",
        description="Структурированный конспект и опорные тезисы.",
        tags=["summary", "notes"],
        build=lambda ctx: " ".join(
            [
                f"Выступай как редактор. Сожми текст по {_interest_list(ctx)} в конспект до 10 пунктов.",
                "Структура: вывод в 2 предложениях, ключевые тезисы, примеры/цифры, "
                "что можно применить сразу.",
                _mode_hint(ctx),
                "Форматируй маркерами, без воды.",
            ]
        ),
    ),
    PromptTemplate(
        id="quiz:self-check",
        title="Проверь понимание",
        description="Квиз с разбором ответов и подсказками.",
        tags=["quiz", "learning"],
        build=lambda ctx: " ".join(
            [
                f"Ты наставник по теме “{_topic(ctx)}”. "
                "Составь квиз на 6 вопросов: 3 с выбором, 3 открытых.",
                "После каждого вопроса показывай правильный ответ и краткое объяснение.",
                "Если ответ неверный, дай подсказку, куда посмотреть или что перечитать.",
            ]
        ),
    ),
    PromptTemplate(
        id="practice:tasks",
        title="Составь упражнения",
        description="Практика с ростом сложности и проверочными критериями.",
        tags=["practice", "skills"],
        interest_titles=["английский язык", "english", "программирование", "python"],
        build=lambda ctx: " ".join(
            [
                f"Подготовь 5 практических упражнений по теме “{_topic(ctx)}” от простого к сложному.",
                "Для каждого упражнения укажи: цель, шаги, критерий самопроверки, "
                "сколько времени закладывать.",
                _mode_hint(ctx),
            ]
        ),
    ),
    PromptTemplate(
        id="sources:curation",
        title="Подбор источников",
        description="Лаконичный список лучших каналов, книг и статей.",
        tags=["sources", "curation"],
        build=lambda ctx: " ".join(
            [
                f"Сделай подборку из 8 качественных источников по {_interest_list(ctx)}: "
                "3 статьи/блога, 2 книги, 2 канала, 1 подкаст или видео.",
                "Для каждого укажи название, чем полезен и уровень (новичок/средний/продвинутый).",
                "Без ссылок. Только проверенные и актуальные материалы.",
            ]
        ),
    ),
    PromptTemplate(
        id="eli5:explain",
        title="Объясни простыми словами",
        description="Разложи сложное на аналогии и примеры.",
        tags=["eli5", "teaching"],
        clusters=["ai", "data", "tech"],
        build=lambda ctx: " ".join(
            [
                f"Объясни “{_topic(ctx)}” простыми словами как для новичка.",
                "Дай бытовую аналогию, 2 практических примера и одно типичное заблуждение.",
                _mode_hint(ctx),
                "Короткие абзацы, без жаргона.",
            ]
        ),
    ),
    PromptTemplate(
        id="critical:thinking",
        title="Критическое мышление",
        description="Разбери сильные/слабые стороны и риски.",
        tags=["critical", "analysis"],
        build=lambda ctx: " ".join(
            [
                f"Проанализируй идею/подход по теме “{_topic(ctx)}”.",
                "Дай список сильных сторон, слабых мест, рисков и скрытых допущений.",
                "Отметь, какие когнитивные искажения могут возникнуть, "
                "и предложи проверки/контрпримеры.",
            ]
        ),
    ),
    PromptTemplate(
        id="project:roadmap",
        title="Проектный план",
        description="Дорожная карта с этапами, рисками и метриками.",
        tags=["project", "roadmap"],
        clusters=["product", "startup", "design", "data"],
        build=lambda ctx: " ".join(
            [
                f"Собери план пилотного проекта по теме “{_topic(ctx)}”.",
                "Этапы: исследования, прототип, проверка гипотез, запуск, метрики.",
                "Для каждого этапа: цель, 3–5 задач, метрика успеха, "
                "возможные риски и как их снизить.",
            ]
        ),
    ),
    PromptTemplate(
        id="checklist:today",
        title="Чеклист действий",
        description="Что сделать сегодня, чтобы продвинуться.",
        tags=["action", "focus"],
        build=lambda ctx: " ".join(
            [
                f"Составь чеклист из 6 коротких действий на день по теме “{_topic(ctx)}”.",
                "Делай акцент на задачах, которые можно выполнить за 15–40 минут.",
                "Добавь блок “если осталось время” с 2 задачами и критериями завершения.",
            ]
        ),
    ),
    PromptTemplate(
        id="reflection:questions",
        title="Рефлексия",
        description="Набор вопросов для осмысления прогресса.",
        tags=["reflection", "journal"],
        build=lambda ctx: " ".join(
            [
                f"Дай 7 вопросов для рефлексии по {_interest_list(ctx)}.",
                "Покрой: что получилось, чему научился, что тормозит, что удивило, "
                "что попробовать иначе.",
                "Сформулируй так, чтобы ответы занимали 3–4 предложения.",
            ]
        ),
    ),
    PromptTemplate(
        id="mentor:coach",
        title="Ментор",
        description="Советы в формате коучинговых шагов.",
        tags=["mentor", "guidance"],
        clusters=["career", "management"],
        build=lambda ctx: " ".join(
            [
                f"Представь, что ты ментор и коуч. Помоги по теме “{_topic(ctx)}”.",
                "Дай 3 коротких вопроса, чтобы уточнить запрос. Затем предложи 5 шагов "
                "с фокусом на действия и обратную связь, которую стоит собрать.",
                "Тон доброжелательный, без клише.",
            ]
        ),
    ),
    PromptTemplate(
        id="ideas:brainstorm",
        title="Генерация идей",
        description="5–7 идей с указанием, как быстро проверить.",
        tags=["ideas", "brainstorm"],
        build=lambda ctx: " ".join(
            [
                f"Сгенерируй 7 идей по теме “{_topic(ctx)}”: свежие, практичные, "
                "без очевидных советов.",
                "Для каждой идеи добавь одно действие для проверки за 1–2 дня и метрику успеха.",
                _mode_hint(ctx),
            ]
        ),
    ),
]
