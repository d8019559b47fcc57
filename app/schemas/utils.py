"""Reusable annotated types for the directory schemas."""

from typing import Annotated

from pydantic import EmailStr, Field, StringConstraints

NonNegativeInt = Annotated[int, Field(ge=0, description="Non-negative integer")]

NonEmptyStr = Annotated[str, StringConstraints(min_length=1, strip_whitespace=True)]

# Brazilian phone numbers, with or without punctuation: (11) 98765-4321
PhoneNumber = Annotated[
    str,
    StringConstraints(
        pattern=r"^\+?[\d\s().-]{8,20}$",
        strip_whitespace=True,
    ),
    Field(description="Phone number", examples=["(11) 98765-4321", "+5511987654321"]),
]

# Postal code: 01310-100 or 01310100
Cep = Annotated[
    str,
    StringConstraints(pattern=r"^\d{5}-?\d{3}$", strip_whitespace=True),
    Field(description="CEP (Brazilian postal code)", examples=["01310-100"]),
]

# Federative unit, two uppercase letters
StateCode = Annotated[
    str,
    StringConstraints(pattern=r"^[A-Z]{2}$", strip_whitespace=True, to_upper=True),
    Field(description="UF", examples=["SP", "RJ"]),
]

ProfessionalId = Annotated[str, Field(min_length=1, max_length=255, description="Professional id")]

Email = Annotated[EmailStr, Field(description="Valid email address")]

SocialLink = Annotated[str, Field(max_length=255, description="Profile handle or URL")]
