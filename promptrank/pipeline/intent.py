"""Intent analysis for free-text prompt queries.

Turns a raw query into an ``Intent``: category, domain, tone, urgency,
keywords and a confidence scalar. Pure and synchronous.

Category and domain are picked by counting keyword hits against the ordered
tables below. The strictly highest count wins and ties go to the row declared
first. That tie-break is arbitrary but deterministic, so the table order is
part of the behaviour.
"""

import re
from typing import Optional, Sequence, Tuple, TypeVar

from loguru import logger

from .models import Intent, IntentCategory, IntentDomain, Tone, Urgency


E = TypeVar('E')

KeywordTable = Tuple[Tuple[E, Tuple[str, ...]], ...]


CATEGORY_KEYWORDS: KeywordTable = (
    (IntentCategory.CREATE, (
        '创建', '写', '生成', '制作', '编写', '设计',
        'create', 'write', 'generate', 'make', 'design')),
    (IntentCategory.ANALYZE, (
        '分析', '检查', '评估', '审查', '研究',
        'analyze', 'check', 'evaluate', 'review', 'study')),
    (IntentCategory.OPTIMIZE, (
        '优化', '改进', '提升', '完善', '修改',
        'optimize', 'improve', 'enhance', 'refine', 'modify')),
    (IntentCategory.TRANSLATE, (
        '翻译', '转换', '转化', '转述',
        'translate', 'convert', 'transform', 'rephrase')),
    (IntentCategory.EXPLAIN, (
        '解释', '说明', '阐述', '描述', '讲解',
        'explain', 'describe', 'illustrate', 'clarify')),
    (IntentCategory.PLAN, (
        '计划', '规划', '安排', '策划', '准备',
        'plan', 'schedule', 'organize', 'prepare')),
)

DOMAIN_KEYWORDS: KeywordTable = (
    (IntentDomain.BUSINESS, (
        '商务', '商业', '销售', '营销', '管理', '企业',
        'business', 'sales', 'marketing', 'management')),
    (IntentDomain.TECHNICAL, (
        '技术', '代码', '编程', '开发', '算法', '系统',
        'technical', 'code', 'programming', 'development')),
    (IntentDomain.CREATIVE, (
        '创意', '创作', '艺术', '设计', '文案', '故事',
        'creative', 'art', 'design', 'story', 'content')),
    (IntentDomain.ACADEMIC, (
        '学术', '研究', '论文', '教学', '学习', '科学',
        'academic', 'research', 'study', 'education')),
    (IntentDomain.COMMUNICATION, (
        '沟通', '交流', '演讲', '邮件', '聊天',
        'communication', 'presentation', 'email', 'chat')),
    (IntentDomain.LEGAL, (
        '法律', '合同', '条款', '协议', '法规',
        'legal', 'contract', 'agreement', 'regulation')),
)

# First match wins
TONE_KEYWORDS: KeywordTable = (
    (Tone.FORMAL, ('正式', '官方', '商务', '专业', 'formal', 'official', 'professional')),
    (Tone.CASUAL, ('随意', '轻松', '简单', 'casual', 'simple', 'easy')),
    (Tone.CREATIVE, ('创意', '创新', '有趣', 'creative', 'innovative', 'interesting')),
    (Tone.TECHNICAL, ('技术', '专业', '详细', 'technical', 'detailed', 'specific')),
    (Tone.CONCISE, ('简洁', '简短', '快速', 'concise', 'brief', 'quick')),
)

URGENCY_KEYWORDS: KeywordTable = (
    (Urgency.HIGH, ('紧急', '立即', '马上', '急需', 'urgent', 'immediate', 'asap')),
    (Urgency.MEDIUM, ('尽快', '较快', 'soon', 'quickly')),
)

STOP_WORDS = frozenset([
    '的', '了', '在', '是', '我', '有', '和', '就', '不', '人', '都', '一', '一个',
    '这', '那', '他', '她', '它', '你', '我们', '他们', '她们', '这个', '那个',
    '以', '及', '为', '与', '等', '或', '但', '从', '到', '对', '于', '给', '把',
    '将', '让', '使', '被', '所', '可', '能', '会', '要', '想', '应该', '可以', '能够',
    '需要', '想要', '希望', '用于', '关于', '帮助', '帮我', '请', '谢谢', '如何', '怎么',
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does', 'did',
    'will', 'would', 'could', 'should', 'may', 'might', 'can', 'this', 'that', 'these', 'those',
    'i', 'you', 'he', 'she', 'it', 'we', 'they', 'me', 'him', 'her', 'us', 'them',
    'help', 'please', 'thank', 'thanks', 'how', 'what', 'when', 'where', 'why', 'who',
])

MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.9
DEFAULT_MAX_KEYWORDS = 8

_PUNCTUATION = re.compile(r'[^\w\u4e00-\u9fff\s]')
_DIGITS = re.compile(r'^[0-9]+$')


def count_hits(text: str, keywords: Sequence[str]) -> int:
    """Number of keywords contained in already lower-cased ``text``."""
    return sum(1 for keyword in keywords if keyword in text)


def best_match(text: str, table: KeywordTable, default: E) -> Tuple[E, int]:
    """Row with the strictly highest hit count; earlier rows win ties."""
    best, best_hits = default, 0
    for label, keywords in table:
        hits = count_hits(text, keywords)
        if hits > best_hits:
            best, best_hits = label, hits
    return best, best_hits


def first_match(text: str, table: KeywordTable, default: E) -> E:
    for label, keywords in table:
        if any(keyword in text for keyword in keywords):
            return label
    return default


def keywords_for(label) -> Tuple[str, ...]:
    """Table keywords for a category or domain, empty for other/general."""
    for table in (CATEGORY_KEYWORDS, DOMAIN_KEYWORDS):
        for row_label, keywords in table:
            if row_label is label:
                return keywords
    return ()


def extract_keywords(query: str, max_keywords: int = DEFAULT_MAX_KEYWORDS) -> Tuple[str, ...]:
    """Unique query tokens in first-seen order.

    Drops punctuation, tokens shorter than two characters, pure numbers and
    stop words.
    """
    cleaned = _PUNCTUATION.sub(' ', query.lower())

    keywords = []
    seen = set()
    for token in cleaned.split():
        if len(token) < 2 or token in STOP_WORDS or _DIGITS.match(token):
            continue
        if token in seen:
            continue
        seen.add(token)
        keywords.append(token)
        if len(keywords) >= max_keywords:
            break

    return tuple(keywords)


def clamp_confidence(raw: float) -> float:
    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, raw))


def analyze_intent(query: Optional[str], max_keywords: int = DEFAULT_MAX_KEYWORDS) -> Intent:
    """
    Parse a raw query into an Intent.

    Args:
        query: Raw query text, may be empty
        max_keywords: Cap on the extracted keyword set

    Returns:
        Intent. A blank query yields other/general with no keywords and the
        floor confidence.
    """
    text = (query or "").lower()

    if not text.strip():
        return Intent(
            category=IntentCategory.OTHER,
            domain=IntentDomain.GENERAL,
            tone=Tone.DETAILED,
            urgency=Urgency.LOW,
            keywords=(),
            confidence=MIN_CONFIDENCE
        )

    category, category_hits = best_match(text, CATEGORY_KEYWORDS, IntentCategory.OTHER)
    domain, domain_hits = best_match(text, DOMAIN_KEYWORDS, IntentDomain.GENERAL)
    tone = first_match(text, TONE_KEYWORDS, Tone.DETAILED)
    urgency = first_match(text, URGENCY_KEYWORDS, Urgency.LOW)
    keywords = extract_keywords(text, max_keywords)

    confidence = clamp_confidence((category_hits + domain_hits + len(keywords)) / 10)

    intent = Intent(
        category=category,
        domain=domain,
        tone=tone,
        urgency=urgency,
        keywords=keywords,
        confidence=confidence,
        category_hits=category_hits,
        domain_hits=domain_hits
    )

    logger.debug(
        f"Intent: {category.value}/{domain.value} tone={tone.value} "
        f"urgency={urgency.value} keywords={list(keywords)} confidence={confidence:.2f}"
    )

    return intent
