"""
Naming conventions used to derive companion class, table and key names.

    >>> tableize("WikiArticleAttribute")
    'wiki_article_attributes'
    >>> foreign_key("WikiArticle")
    'wiki_article_id'
"""

import re

import inflect

_pluralizer = inflect.engine()


def underscore(name: str) -> str:
    """'WikiArticle' -> 'wiki_article'"""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def pluralize(word: str) -> str:
    """Pluralize the last underscore-separated segment of ``word``."""
    head, sep, last = word.rpartition("_")
    if not last:
        return word
    return f"{head}{sep}{_pluralizer.plural_noun(last)}"


def tableize(class_name: str) -> str:
    return pluralize(underscore(class_name))


def foreign_key(class_name: str) -> str:
    return f"{underscore(class_name)}_id"
