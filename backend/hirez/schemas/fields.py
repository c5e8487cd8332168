from enum import Enum

from pydantic import BaseModel, Field, model_validator


class FieldType(str, Enum):
    text = "text"
    textarea = "textarea"
    select = "select"
    file = "file"
    email = "email"
    phone = "phone"


class FormField(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    type: FieldType
    label: str = Field(min_length=1, max_length=255)
    required: bool = False
    options: list[str] | None = None
    placeholder: str | None = None
    is_fixed: bool = False
    is_ai_generated: bool = False

    @model_validator(mode="after")
    def _options_only_for_select(self) -> "FormField":
        if self.type == FieldType.select:
            opts = [o.strip() for o in (self.options or []) if isinstance(o, str) and o.strip()]
            if not opts:
                raise ValueError(f"Select field '{self.label}' needs at least one option")
            self.options = opts
        elif self.options:
            raise ValueError(f"Only select fields can have options ('{self.label}' is {self.type.value})")
        else:
            self.options = None
        return self


class SuggestedField(BaseModel):
    """Field shape the model is asked to return (no id; we assign one)."""

    type: FieldType
    label: str = Field(min_length=1, max_length=255)
    required: bool = False
    options: list[str] | None = None


# Every form starts with these; they back the contact details used by the notifier.
FIXED_FIELDS: tuple[FormField, ...] = (
    FormField(id="fixed-name", type=FieldType.text, label="Full Name", required=True, is_fixed=True),
    FormField(id="fixed-email", type=FieldType.email, label="Email Address", required=True, is_fixed=True),
    FormField(id="fixed-phone", type=FieldType.phone, label="Phone Number", required=True, is_fixed=True),
    FormField(id="fixed-resume", type=FieldType.file, label="Resume Upload", required=True, is_fixed=True),
)
