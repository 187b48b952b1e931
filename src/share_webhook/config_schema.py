"""
Configuration Schema

Pydantic models for the share-webhook configuration file. Every section is
optional; defaults describe a local setup that renders emails and hands
them to an SMTP server on localhost.

Example config.yaml:

    email:
      enabled: true
      to: inbox@example.com
      from_domain: example.com
    smtp:
      host: smtp.example.com
      port: 587
      username: webhook@example.com
      password_env: SMTP_PASSWORD
      use_tls: true
    limits:
      max_text_size: 1048576
"""
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict


class EmailConfig(BaseModel):
    """Outgoing notification settings."""
    enabled: bool = Field(default=True, description="Send an email for every accepted payload")
    to: Optional[str] = Field(default=None, description="Recipient address")
    from_domain: str = Field(default="localhost", description="Domain of the webhook@<domain> sender address")

    @field_validator('to')
    @classmethod
    def validate_to(cls, v: Optional[str]) -> Optional[str]:
        """Validate the recipient looks like an email address."""
        if v is None:
            return v
        v = v.strip()
        if '@' not in v or any(c in v for c in '\r\n'):
            raise ValueError(f"email.to must be a single email address, got {v!r}")
        return v

    @field_validator('from_domain')
    @classmethod
    def validate_from_domain(cls, v: str) -> str:
        """Validate the sender domain is a single non-empty token."""
        v = v.strip()
        if not v or any(c.isspace() for c in v) or '@' in v:
            raise ValueError(f"email.from_domain must be a bare domain name, got {v!r}")
        return v

    @model_validator(mode='after')
    def validate_recipient_when_enabled(self) -> 'EmailConfig':
        """A recipient is required as soon as sending is enabled."""
        if self.enabled and not self.to:
            raise ValueError("email.to is required when email.enabled is true")
        return self


class SmtpConfig(BaseModel):
    """SMTP transport used to deliver notifications."""
    host: str = Field(default="localhost", description="SMTP server hostname")
    port: int = Field(default=25, description="SMTP port (25, 465, 587)")
    username: Optional[str] = Field(default=None, description="Login name; no login when empty")
    password_env: str = Field(default="SMTP_PASSWORD", description="Environment variable holding the SMTP password")
    use_tls: bool = Field(default=False, description="Upgrade the connection with STARTTLS")
    timeout_seconds: int = Field(default=30, description="Socket timeout for the SMTP session")

    @field_validator('port')
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError(f"Port must be between 1 and 65535, got {v}")
        return v

    @field_validator('timeout_seconds')
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}")
        return v


class LimitsConfig(BaseModel):
    """Payload limits enforced before rendering."""
    max_text_size: int = Field(default=1024 * 1024, description="Maximum payload size in bytes")

    @field_validator('max_text_size')
    @classmethod
    def validate_max_text_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_text_size must be positive, got {v}")
        return v


class PayloadConfig(BaseModel):
    """JSON payload layout."""
    text_field: str = Field(default="text_or_url", description="JSON key holding the shared text")


class PathsConfig(BaseModel):
    """File and directory paths."""
    template_dir: Optional[str] = Field(default=None, description="Directory with replacement email templates")


class ShareWebhookConfig(BaseModel):
    """Root configuration model."""
    model_config = ConfigDict(extra='ignore')

    email: EmailConfig = Field(default_factory=lambda: EmailConfig(enabled=False))
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    payload: PayloadConfig = Field(default_factory=PayloadConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
