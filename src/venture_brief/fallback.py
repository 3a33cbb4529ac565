from __future__ import annotations

import datetime as dt
import random
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from venture_brief.domain.models import (
    FallbackTier,
    KeywordEntry,
    NewsArticle,
    RecordSchema,
    ResearchPaper,
    RetrievalContext,
    ValidatedRecord,
)

GENERIC_TOPIC = "emerging technology"
DEFAULT_DOMAIN = "Interdisciplinary Studies"

SMART_COUNTS: dict[RecordSchema, int] = {
    RecordSchema.research_paper: 4,
    RecordSchema.news_article: 5,
    RecordSchema.keyword: 6,
}
GENERIC_COUNTS: dict[RecordSchema, int] = {
    RecordSchema.research_paper: 3,
    RecordSchema.news_article: 3,
    RecordSchema.keyword: 5,
}


def _prefix_rule(*prefixes: str) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(prefix) for prefix in prefixes)
    return re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)


_DOMAIN_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (_prefix_rule("machine learning", "ai", "neural"), "Computer Science"),
    (_prefix_rule("medical", "health", "clinical"), "Medicine"),
    (_prefix_rule("sustainab", "environment", "climate", "packaging"), "Environmental Science"),
    (_prefix_rule("quantum", "physics"), "Physics"),
    (_prefix_rule("biology", "genetic", "bio"), "Biology"),
    (_prefix_rule("chemistry", "chemical"), "Chemistry"),
    (_prefix_rule("economic", "business", "finance"), "Economics"),
    (_prefix_rule("social", "psychology", "behavior"), "Social Science"),
)

_AUTHORS_BY_DOMAIN: dict[str, tuple[tuple[str, ...], ...]] = {
    "Computer Science": (
        ("Dr. Sarah Chen", "Prof. Michael Kumar", "Dr. Elena Rodriguez"),
        ("Prof. David Zhang", "Dr. Maria Santos", "Dr. Ahmed Hassan"),
        ("Dr. Lisa Wang", "Prof. Robert Schmidt", "Dr. Yuki Tanaka"),
        ("Prof. Jennifer Liu", "Dr. Carlos Mendez", "Dr. Priya Patel"),
    ),
    "Medicine": (
        ("Dr. Emily Johnson", "Prof. Mark Thompson", "Dr. Anna Kowalski"),
        ("Prof. James Wilson", "Dr. Sofia Gonzalez", "Dr. Michael Brown"),
        ("Dr. Rachel Green", "Prof. Andreas Mueller", "Dr. Fatima Al-Zahra"),
        ("Prof. Daniel Kim", "Dr. Isabella Rossi", "Dr. Thomas Anderson"),
    ),
    "Physics": (
        ("Prof. Stephen Clarke", "Dr. Marie Dubois", "Dr. Raj Sharma"),
        ("Dr. Alexander Petrov", "Prof. Linda Chang", "Dr. Giuseppe Ferrari"),
        ("Prof. Hiroshi Sato", "Dr. Emma Thompson", "Dr. Omar Abdullah"),
        ("Dr. Catherine Martin", "Prof. Antonio Silva", "Dr. Mei-Lin Wu"),
    ),
}
_DEFAULT_AUTHORS: tuple[tuple[str, ...], ...] = (
    ("Dr. Research Lead", "Prof. Academic Expert", "Dr. Field Specialist"),
    ("Prof. Senior Researcher", "Dr. Principal Investigator", "Dr. Domain Expert"),
    ("Dr. Lead Scientist", "Prof. Department Head", "Dr. Research Fellow"),
    ("Prof. Chair Professor", "Dr. Associate Researcher", "Dr. Postdoc Fellow"),
)

_DEFAULT_NEWS_SOURCES = (
    "TechCrunch",
    "VentureBeat",
    "Forbes",
    "Bloomberg",
    "Reuters",
    "Industry Weekly",
    "Market Watch",
)
_NEWS_SOURCES_BY_DOMAIN: dict[str, tuple[str, ...]] = {
    "Computer Science": ("TechCrunch", "VentureBeat", "The Verge", "Wired", "Ars Technica"),
    "Medicine": ("STAT News", "Fierce Healthcare", "MedCity News", "Healthcare Dive", "Reuters"),
    "Environmental Science": ("GreenBiz", "Packaging Dive", "Bloomberg Green", "Reuters", "Environmental Leader"),
    "Economics": ("Bloomberg", "Financial Times", "Forbes", "Reuters", "Market Watch"),
}

_DOMAIN_TERMS: dict[str, tuple[str, ...]] = {
    "Computer Science": ("artificial intelligence", "automation", "cloud platforms", "data infrastructure", "SaaS", "developer tools"),
    "Medicine": ("digital health", "patient outcomes", "telemedicine", "clinical workflows", "health data", "regulatory approval"),
    "Environmental Science": ("circular economy", "carbon footprint", "sustainable materials", "ESG reporting", "recycling", "green supply chain"),
    "Physics": ("quantum computing", "advanced materials", "photonics", "sensors", "deep tech", "research commercialization"),
    "Biology": ("biotechnology", "synthetic biology", "genomics", "life sciences", "lab automation", "bioinformatics"),
    "Chemistry": ("specialty chemicals", "materials science", "process chemistry", "green chemistry", "catalysis", "chemical safety"),
    "Economics": ("fintech", "digital payments", "market analytics", "SMB software", "risk management", "embedded finance"),
    "Social Science": ("community platforms", "behavioral insights", "creator economy", "social impact", "user engagement", "future of work"),
}
_GENERIC_TERMS = ("digital transformation", "startup funding", "market trends", "innovation", "customer experience", "scalability")

_NEWS_TITLES = (
    "{keyword} Market Experiences Record Growth in {year}",
    "Major Investment Round Completed for {keyword} Startup",
    "{keyword} Technology Trends Shaping {next_year}",
    "Regulatory Changes Impact {keyword} Industry",
    "{keyword} Innovation Drives Digital Transformation",
)
_NEWS_SNIPPETS = (
    "Recent market analysis shows significant growth in the {keyword} sector, with industry experts predicting continued expansion through {next_year}.",
    "A leading {keyword} company has secured substantial funding to accelerate product development and market expansion initiatives.",
    "New technological developments in {keyword} are creating opportunities for innovation and disruption across multiple industries.",
    "Industry stakeholders are adapting to new regulatory frameworks affecting {keyword} operations and market dynamics.",
    "Companies leveraging {keyword} technology are seeing improved efficiency and competitive advantages in their respective markets.",
)

_STOPWORDS = frozenset(
    {"and", "for", "from", "into", "that", "the", "this", "with", "based", "using", "platform", "startup", "about"},
)

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def infer_domain(query: str) -> str:
    for pattern, domain in _DOMAIN_RULES:
        if pattern.search(query):
            return domain
    return DEFAULT_DOMAIN


def capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def _slugify(text: str) -> str:
    return _NON_SLUG_RE.sub("-", text.strip().lower()).strip("-")


def _cycled(items: Sequence[str], count: int) -> list[str]:
    return [items[index % len(items)] for index in range(count)]


@dataclass(frozen=True)
class FallbackOutcome:
    tier: FallbackTier
    records: tuple[ValidatedRecord, ...]


class FallbackSynthesizer:
    """Deterministic stand-in records for when a completion yields nothing usable.

    The smart tier tailors records to the inferred academic domain of the query;
    the generic tier never fails and backs it up. Pass a seeded ``random.Random``
    and a fixed ``today`` for reproducible output.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        today: Callable[[], dt.date] | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._today = today or dt.date.today

    def synthesize(
        self,
        query: str,
        schema: RecordSchema,
        *,
        keywords: Sequence[str] | None = None,
    ) -> tuple[ValidatedRecord, ...]:
        return self.synthesize_with_tier(query, schema, keywords=keywords).records

    def synthesize_with_tier(
        self,
        query: str,
        schema: RecordSchema,
        *,
        keywords: Sequence[str] | None = None,
    ) -> FallbackOutcome:
        try:
            records = self.smart(query, schema, keywords=keywords)
        except LookupError:
            return FallbackOutcome(tier=FallbackTier.generic, records=self.generic(query, schema))
        return FallbackOutcome(tier=FallbackTier.smart, records=records)

    def smart(
        self,
        query: str,
        schema: RecordSchema,
        *,
        keywords: Sequence[str] | None = None,
    ) -> tuple[ValidatedRecord, ...]:
        topic = query.strip()
        if not _slugify(topic):
            raise LookupError("smart fallback needs a query with at least one word")
        domain = infer_domain(topic)
        today = self._today()

        if schema is RecordSchema.research_paper:
            return tuple(self._smart_papers(topic, domain, today))
        if schema is RecordSchema.news_article:
            terms = [term.strip() for term in keywords or () if term.strip()] or [topic]
            return tuple(self._smart_news(terms, domain, today))
        if schema is RecordSchema.keyword:
            return tuple(_smart_keywords(topic, domain))
        raise LookupError(f"no smart fallback for schema {schema}")

    def generic(self, query: str, schema: RecordSchema) -> tuple[ValidatedRecord, ...]:
        topic = query.strip() or GENERIC_TOPIC
        today = self._today()
        if schema is RecordSchema.research_paper:
            return tuple(_generic_papers(topic, today))
        if schema is RecordSchema.news_article:
            return tuple(self._generic_news(topic, today))
        return tuple(_generic_keywords(topic))

    def _smart_papers(self, topic: str, domain: str, today: dt.date) -> list[ResearchPaper]:
        title_topic = capitalize_words(topic)
        slug = _slugify(topic)
        authors = _AUTHORS_BY_DOMAIN.get(domain, _DEFAULT_AUTHORS)
        yy = today.year % 100
        rng = self._rng
        specs = (
            (
                f"{title_topic}: A Comprehensive Survey and Future Directions",
                f"This survey paper provides a comprehensive overview of recent advances in {topic}, examining "
                "current methodologies, challenges, and future research opportunities. The paper includes analysis "
                "of over 150 recent publications in the field.",
                f"https://arxiv.org/abs/{yy:02d}11.{rng.randrange(10000):04d}",
                today.year,
                [title_topic, "Survey", domain, "Literature Review"],
            ),
            (
                f"Novel Approaches to {title_topic}: Machine Learning and Deep Learning Perspectives",
                f"This paper presents innovative machine learning approaches for {topic}, introducing novel neural "
                "network architectures and optimization techniques. Experimental results demonstrate significant "
                "improvements over existing methods.",
                f"https://www.researchgate.net/publication/3{rng.randrange(10**9):09d}_{slug}",
                today.year,
                [title_topic, "Machine Learning", "Deep Learning", "Neural Networks"],
            ),
            (
                f"{title_topic} in Industry Applications: Case Studies and Implementation Strategies",
                f"An empirical study examining real-world applications of {topic} across various industries, "
                "providing detailed case studies and practical implementation guidelines for practitioners and "
                "researchers.",
                f"https://ieeexplore.ieee.org/document/{rng.randrange(10**9):09d}",
                today.year - 1,
                [title_topic, "Industry Applications", "Case Studies", "Implementation"],
            ),
            (
                f"Optimization and Performance Analysis of {title_topic} Systems",
                f"This research focuses on optimization techniques for {topic} systems, presenting mathematical "
                "models and algorithmic improvements that enhance performance and efficiency in practical "
                "applications.",
                f"https://link.springer.com/article/10.1007/s{rng.randrange(100000):05d}-{yy:02d}-1004",
                today.year - 1,
                [title_topic, "Optimization", "Performance Analysis", "Algorithms"],
            ),
        )
        return [
            ResearchPaper(
                paper_id=f"smart-{index}-{rng.getrandbits(32):08x}",
                title=title,
                description=description,
                authors=", ".join(authors[(index - 1) % len(authors)]),
                url=url,
                year=year,
                subjects=subjects,
            )
            for index, (title, description, url, year, subjects) in enumerate(specs, start=1)
        ]

    def _smart_news(self, terms: Sequence[str], domain: str, today: dt.date) -> list[NewsArticle]:
        sources = _NEWS_SOURCES_BY_DOMAIN.get(domain, _DEFAULT_NEWS_SOURCES)
        articles: list[NewsArticle] = []
        count = SMART_COUNTS[RecordSchema.news_article]
        for index, keyword in enumerate(_cycled(terms, count)):
            published = today - dt.timedelta(days=self._rng.randint(1, 90))
            source = sources[index % len(sources)]
            values = {"keyword": keyword, "year": published.year, "next_year": published.year + 1}
            articles.append(
                NewsArticle(
                    title=_NEWS_TITLES[index].format(**values),
                    url=(
                        f"https://www.{_slugify(source)}.com/{published:%Y/%m/%d}/"
                        f"{_slugify(keyword) or 'industry'}-news"
                    ),
                    snippet=_NEWS_SNIPPETS[index].format(**values),
                    source=source,
                    date=published,
                    relevance_score=round(self._rng.uniform(0.6, 1.0), 2),
                ),
            )
        return articles

    def _generic_news(self, topic: str, today: dt.date) -> list[NewsArticle]:
        specs = (
            (
                f"{capitalize_words(topic)} Attracts Growing Investor Attention",
                f"Investors continue to back companies working on {topic}, citing steady demand and room for new entrants.",
            ),
            (
                f"What the Latest Market Data Says About {capitalize_words(topic)}",
                f"Analysts point to rising adoption of {topic} solutions among both enterprises and consumers.",
            ),
            (
                f"Startups Race to Differentiate in {capitalize_words(topic)}",
                f"Early-stage teams in {topic} are focusing on niche use cases and faster time to value.",
            ),
        )
        return [
            NewsArticle(
                title=title,
                url="#",
                snippet=snippet,
                source="Industry News",
                date=today - dt.timedelta(days=self._rng.randint(1, 90)),
                relevance_score=round(self._rng.uniform(0.6, 0.8), 2),
            )
            for title, snippet in specs
        ]


def _smart_keywords(topic: str, domain: str) -> list[KeywordEntry]:
    words = [word for word in re.findall(r"[A-Za-z][A-Za-z0-9-]+", topic) if len(word) > 3]
    candidates = [topic, *[word for word in words if word.casefold() not in _STOPWORDS], domain]
    candidates.extend(_DOMAIN_TERMS.get(domain, _GENERIC_TERMS))
    candidates.extend(_GENERIC_TERMS)

    terms: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        key = candidate.casefold()
        if key in seen:
            continue
        seen.add(key)
        terms.append(candidate)
    count = SMART_COUNTS[RecordSchema.keyword]
    return [
        KeywordEntry(term=term, relevance_score=round(0.95 - 0.05 * index, 2))
        for index, term in enumerate(terms[:count])
    ]


def _generic_keywords(topic: str) -> list[KeywordEntry]:
    terms = (topic, f"{topic} market", f"{topic} innovation", "market trends", "startup funding")
    return [KeywordEntry(term=term, relevance_score=0.7) for term in terms]


def _generic_papers(topic: str, today: dt.date) -> list[ResearchPaper]:
    title_topic = capitalize_words(topic)
    slug = _slugify(topic) or "research"
    specs = (
        (
            f"Recent Advances in {title_topic}: A Systematic Review",
            f"This comprehensive review examines the latest developments in {topic} research, analyzing recent "
            "publications and identifying key trends in the field. The paper provides insights into current "
            "methodologies and future research directions.",
            "Multiple Authors",
            today.year,
            [title_topic, "Systematic Review", "Research Analysis"],
        ),
        (
            f"Applications of {title_topic} in Modern Technology",
            f"An exploration of how {topic} is being applied in current technological solutions and its potential "
            "for future innovations. This study presents case studies and practical implementations across "
            "various industries.",
            "Research Consortium",
            today.year - 1,
            [title_topic, "Technology Applications", "Innovation", "Case Studies"],
        ),
        (
            f"{title_topic}: Methods and Algorithms",
            f"This paper presents novel methods and algorithms related to {topic}, with detailed mathematical "
            "formulations and experimental validation. The research contributes to both theoretical understanding "
            "and practical applications.",
            "Academic Research Team",
            today.year,
            [title_topic, "Algorithms", "Methods", "Experimental Validation"],
        ),
    )
    return [
        ResearchPaper(
            paper_id=f"fallback-{index}",
            title=title,
            description=description,
            authors=authors,
            url=f"https://example.com/research/{slug}/{index}",
            year=year,
            subjects=subjects,
        )
        for index, (title, description, authors, year, subjects) in enumerate(specs, start=1)
    ]


def fallback_market_trends(keywords: Sequence[str]) -> list[str]:
    focus = next((keyword.strip() for keyword in keywords if keyword.strip()), GENERIC_TOPIC)
    return [
        f"Growing investment in {focus} solutions as buyers look for measurable efficiency gains",
        f"AI-assisted automation reshaping how {focus} products are built and delivered",
        f"Rising customer expectations for personalized, mobile-first {focus} experiences",
        f"Sustainability and regulatory pressure influencing {focus} purchasing decisions",
        f"Consolidation among established {focus} players opening niches for focused startups",
    ]


def fallback_competitive_landscape(context: RetrievalContext, keywords: Sequence[str]) -> str:
    focus = ", ".join(keyword.strip() for keyword in keywords[:3] if keyword.strip()) or context.topic() or GENERIC_TOPIC
    name = context.title.strip() or "A new entrant"
    return (
        f"The {focus} space combines established incumbents with a steady stream of venture-backed challengers. "
        f"{name} will compete on differentiation and speed of execution rather than scale. "
        "Partnerships and a clearly defined niche are likely to matter more than feature breadth in the near term."
    )
