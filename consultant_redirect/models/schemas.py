"""
Pydantic models for the consultant redirect service.

Domain models (Consultant, Reservation, ConsultantLoad) describe rows read from
the roster and redirect-log tables. Result models (IssuedReservation,
ConfirmedReservation, TodayBalance) are what the services return; each knows
how to render the Portuguese-keyed payload the landing-page scripts and the
admin dashboard already consume. ConfirmRedirectRequest is the only request
body.

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from consultant_redirect.models.enums import ReservationStatus


# Primary keys come from serial or uuid columns depending on the deployment.
RowId = Union[int, str]


# =============================================================================
# Domain Models
# =============================================================================


class Consultant(BaseModel):
    """
    A person eligible to receive redirected contacts for one platform.

    Mirrors a consultores_redirect row joined with its users row. The
    matching key (utm_consultor) is free text typed by the admin and is
    compared against lead attribution only after normalization.
    """
    id: RowId
    user_id: Optional[RowId] = None
    platform: str
    numero: str = Field(..., description="WhatsApp contact number")
    ativo: bool = True
    utm_consultor: Optional[str] = Field(
        default=None,
        description="Free-text key matched against leads_educa.var1",
    )
    name: Optional[str] = None
    email: Optional[str] = None
    total_usos: int = 0
    ultimo_uso: Optional[datetime] = None
    ordem_atual: int = 0

    def identity(self) -> Dict[str, Any]:
        """Public identity block returned alongside a redirect number."""
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "utm_consultor": self.utm_consultor or None,
        }


class ConsultantLoad(BaseModel):
    """A consultant together with the leads attributed to them today."""
    consultant: Consultant
    matching_key: Optional[str] = None
    today_count: int = Field(default=0, ge=0)


class Reservation(BaseModel):
    """
    One selection event (a redirect_logs row).

    consultant_id is None when the reservation hands out a backup number.
    """
    id: Optional[RowId] = None
    token: str
    platform: str
    numero: Optional[str] = None
    consultant_id: Optional[RowId] = None
    status: ReservationStatus = ReservationStatus.ISSUED
    issued_at: datetime
    expires_at: datetime
    ip_origem: Optional[str] = None
    user_agent: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    lead_data: Optional[Any] = None

    def effective_status(self, now: datetime) -> ReservationStatus:
        if self.status == ReservationStatus.ISSUED and now >= self.expires_at:
            return ReservationStatus.EXPIRED
        return self.status


# =============================================================================
# Service Results
# =============================================================================


class IssuedReservation(BaseModel):
    """Outcome of issuing a reservation: the number to contact and its token."""
    numero: str
    platform: str
    consultant: Optional[Consultant] = None
    token: str
    expires_at: datetime
    ttl_minutes: int

    @property
    def consultant_ref(self) -> Optional[RowId]:
        return self.consultant.id if self.consultant else None

    def to_response_data(self) -> Dict[str, Any]:
        return {
            "numero": self.numero,
            "plataforma": self.platform,
            "consultor": self.consultant.identity() if self.consultant else None,
            "token": self.token,
            "expires_at": self.expires_at.isoformat(),
            "expires_in_minutes": self.ttl_minutes,
        }


class ConfirmedReservation(BaseModel):
    numero: str
    platform: str
    consultant_id: Optional[RowId] = None
    confirmed_at: datetime

    def to_response_data(self) -> Dict[str, Any]:
        return {
            "numero": self.numero,
            "plataforma": self.platform,
            "confirmed_at": self.confirmed_at.isoformat(),
        }


class RosterTotals(BaseModel):
    """Platform-wide roster counters shown on the stats endpoint."""
    total_consultants: int = 0
    active_consultants: int = 0
    total_redirects: int = 0


class TodayBalance(BaseModel):
    """
    Fairness snapshot for one platform.

    spread (max - min) is the figure operations watch: under the
    least-loaded policy it should stay at 0 or 1 through the day.
    """
    platform: str
    per_consultant: List[ConsultantLoad] = Field(default_factory=list)
    min: int = 0
    max: int = 0
    spread: int = 0
    mean: float = 0.0
    std_dev: float = 0.0
    totals: RosterTotals = Field(default_factory=RosterTotals)
    redirects_today: int = 0

    def to_response_data(self) -> Dict[str, Any]:
        return {
            "plataforma": self.platform,
            "consultores": [
                {
                    "id": load.consultant.id,
                    "name": load.consultant.name,
                    "email": load.consultant.email,
                    "utm_consultor_norm": load.matching_key,
                    "today_count": load.today_count,
                }
                for load in self.per_consultant
            ],
            "hoje_min": self.min,
            "hoje_max": self.max,
            "diferenca": self.spread,
            "media": self.mean,
            "desvio_padrao": self.std_dev,
            "total_consultores": self.totals.total_consultants,
            "consultores_ativos": self.totals.active_consultants,
            "total_redirecionamentos": self.totals.total_redirects,
            "redirects_hoje": self.redirects_today,
        }


# =============================================================================
# Request Models
# =============================================================================


class ConfirmRedirectRequest(BaseModel):
    """
    Body of POST /confirm-redirect.

    Older embed scripts send ``platform``; newer ones send ``plataforma``.
    Both are accepted. Some embeds send numero as a JSON number; numbers are
    taken as strings. lead_data is stored verbatim and never validated.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {
                "token": "9f2c...e1",
                "numero": "5511999990000",
                "plataforma": "whatsapp",
                "lead_data": {"nome": "Fulano", "email": "x@y.com"},
            }
        },
    )

    token: Optional[str] = None
    numero: Optional[str] = None
    plataforma: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("plataforma", "platform"),
    )
    lead_data: Optional[Any] = None
