"""Models used by the test suite."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text

from flex_attributes import FlexAttributesMixin
from flex_attributes.db.base import Base


class City(FlexAttributesMixin, Base):
    """No restrictions: any name that is not a member is a flex attribute."""

    __tablename__ = "cities"
    __flex_options__ = {}

    id = Column(Integer, primary_key=True)
    name = Column(String(100))

    def describe(self) -> str:
        return f"City {self.name}"


class WikiArticle(FlexAttributesMixin, Base):
    """Flex attributes scoped by version."""

    __tablename__ = "wiki_articles"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    version = Column(Integer, nullable=False, default=1)


WikiArticle.has_flex_attributes(versioned=True)


class Capitol(FlexAttributesMixin, Base):
    """Restricted through the ``fields`` option."""

    __tablename__ = "capitols"
    __flex_options__ = {"fields": ["potions", "fury", "weave"]}

    id = Column(Integer, primary_key=True)
    name = Column(String(100))

    # Plain, unmapped instance attribute declared on the class
    varga = None

    @classmethod
    def flex_attributes(cls):
        # The fields option takes precedence over this list
        return ["ignored"]


class Preference(Base):
    """Hand-written companion class for Account."""

    __tablename__ = "preferences"

    account_id = Column(Integer, ForeignKey("accounts.id"), primary_key=True)
    name = Column(String(100), primary_key=True)
    value = Column(Text)

    def __repr__(self) -> str:
        return f"Preference({self.name!r}={self.value!r})"


class Account(FlexAttributesMixin, Base):
    """Restricted through the ``flex_attributes()`` enumerator."""

    __tablename__ = "accounts"
    __flex_options__ = {"class_name": "Preference", "relationship_name": "preferences"}

    id = Column(Integer, primary_key=True)
    login = Column(String(50), nullable=False)

    @classmethod
    def flex_attributes(cls):
        return ["project_search", "project_order", "user_search", "user_order"]


class Sensor(FlexAttributesMixin, Base):
    """Restricted through an ``is_flex_attribute`` override."""

    __tablename__ = "sensors"
    __flex_options__ = {"fields": ["ignored_by_override"]}

    id = Column(Integer, primary_key=True)
    label = Column(String(50))

    @classmethod
    def is_flex_attribute(cls, name):
        return name.startswith("reading_")


class Harbor(FlexAttributesMixin, Base):
    """Locks its row before rebuilding and stores values as plain text."""

    __tablename__ = "harbors"
    __flex_options__ = {"lock_owner": True, "value_type": Text}

    id = Column(Integer, primary_key=True)
    name = Column(String(100))
