"""
Pydantic модели для данных, извлечённых из CV и входящих писем.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class ExtractedCVFields(BaseModel):
    """Поля, найденные эвристиками в тексте CV"""
    first_name: str = Field(default="", description="Имя кандидата")
    last_name: str = Field(default="", description="Фамилия кандидата")
    email: Optional[str] = Field(default=None, description="Email (в нижнем регистре)")
    mobile: Optional[str] = Field(default=None, description="Мобильный, 10 цифр без разделителей")
    phone: Optional[str] = Field(default=None, description="Стационарный телефон без разделителей")
    profession: Optional[str] = Field(default=None, description="Профессия, не длиннее 100 символов")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class EmailAttachment(BaseModel):
    """Вложение входящего письма"""
    filename: str = ""
    content_type: str = ""
    payload: bytes = b""


class InboundEmail(BaseModel):
    """Разобранное входящее письмо"""
    subject: str = ""
    sender: str = Field(default="", description="Заголовок From как есть")
    sender_email: Optional[str] = Field(default=None, description="Адрес отправителя")
    attachments: List[EmailAttachment] = Field(default_factory=list)
