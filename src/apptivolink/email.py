"""Outbound email through the platform's email endpoint."""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from apptivolink.connectors.base import BaseConnector
from apptivolink.result import ErrorKind, ResolutionResult


class EmailRecipient(BaseModel):
    email_address: str = Field(serialization_alias="emailAddress")
    name: Optional[str] = None


class AssociatedObject(BaseModel):
    """Record the email is filed against."""

    object_id: int = Field(serialization_alias="objectId")
    object_ref_id: str = Field(serialization_alias="objectRefId")
    object_ref_name: str = Field(default="", serialization_alias="objectRefName")


class EmailMessage(BaseModel):
    """An email in the platform's ``emailData`` shape."""

    model_config = ConfigDict(populate_by_name=True)

    from_address: str
    to: List[str]
    subject: str
    body: str
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)
    associated_objects: List[AssociatedObject] = Field(default_factory=list)
    is_from_app: str = "App"
    close_object: bool = False
    status: str = "Send1"

    def to_email_data(self) -> Dict[str, Any]:
        def recipients(addresses: List[str]) -> List[Dict[str, Any]]:
            return [
                EmailRecipient(email_address=a).model_dump(by_alias=True, exclude_none=True)
                for a in addresses
            ]

        return {
            "fromAddress": self.from_address,
            "toAddresses": recipients(self.to),
            "ccAddresses": recipients(self.cc),
            "bccAddresses": recipients(self.bcc),
            "subject": self.subject,
            "body": self.body,
            "associatedObjects": [o.model_dump(by_alias=True) for o in self.associated_objects],
            "isFromApp": self.is_from_app,
            "closeObject": "true" if self.close_object else "false",
            "status": self.status,
        }


def send_email(
    store: BaseConnector, email: Union[EmailMessage, Dict[str, Any]]
) -> ResolutionResult[Dict[str, Any]]:
    """Send an email, returning the store's result.

    Args:
        store: Connector implementing ``send_email``
        email: EmailMessage or a prebuilt ``emailData`` dict
    """
    email_data = email.to_email_data() if isinstance(email, EmailMessage) else email
    if not email_data.get("toAddresses"):
        return ResolutionResult.fail(ErrorKind.EMPTY_REQUIRED_VALUE, "Email has no recipients")
    return store.send_email(email_data)
