"""
Parameterized SQL for the consultant redirect tables.

Tables touched (owned by the back-office schema, never created here):
    consultores_redirect  roster: one row per consultant and platform
    users                 consultant identity and utm_consultor matching key
    leads_educa           inbound leads; var1 carries the consultant attribution
    redirect_logs         one row per issued reservation token

Every value is passed as an asyncpg positional parameter ($1, $2, ...);
nothing is interpolated into the SQL text.
"""

from consultant_redirect.models.enums import ReservationStatus


# Columns selected for every consultant row, in the shape
# PostgresRedirectStore._record_to_consultant expects.
CONSULTANT_COLUMNS: str = """
    cr.id,
    cr.user_id,
    cr.plataforma,
    cr.numero,
    cr.ativo,
    cr.total_usos,
    cr.ultimo_uso,
    cr.ordem_atual,
    u.name,
    u.email,
    u.utm_consultor
"""

RESERVATION_COLUMNS: str = """
    id,
    token,
    plataforma,
    numero,
    consultor_id,
    status,
    created_at,
    expira_em,
    ip_origem,
    user_agent,
    confirmado_em,
    dados_lead
"""


# =============================================================================
# ROSTER
# =============================================================================

def get_active_roster_query() -> str:
    """
    Active consultants for one platform.

    Params: $1 platform tag.
    """
    return f"""
    SELECT {CONSULTANT_COLUMNS}
    FROM consultores_redirect cr
    JOIN users u ON cr.user_id = u.id
    WHERE cr.plataforma = $1
      AND cr.ativo = true
    ORDER BY cr.id
    """


def get_touch_last_used_query() -> str:
    """
    Stamp ultimo_uso on issuance. Informational only; ordering is driven by
    the daily lead counts.

    Params: $1 consultant id, $2 timestamp.
    """
    return """
    UPDATE consultores_redirect
    SET ultimo_uso = $2
    WHERE id = $1
    """


def get_increment_usage_query() -> str:
    """
    Params: $1 consultant id.
    """
    return """
    UPDATE consultores_redirect
    SET total_usos = total_usos + 1
    WHERE id = $1
    """


def get_roster_totals_query() -> str:
    """
    Roster counters for the stats endpoint.

    Params: $1 platform tag.
    """
    return """
    SELECT
        COUNT(*) AS total_consultores,
        COUNT(*) FILTER (WHERE ativo = true) AS consultores_ativos,
        COALESCE(SUM(total_usos), 0) AS total_redirecionamentos
    FROM consultores_redirect
    WHERE plataforma = $1
    """


# =============================================================================
# DAILY ACTIVITY
# =============================================================================

def get_lead_counts_for_day_query() -> str:
    """
    Lead count per raw attribution key (leads_educa.var1) for one calendar day.

    Keys are returned exactly as typed; normalization happens in
    services.selection so every store applies the same rule.

    Params: $1 date.
    """
    return """
    SELECT
        var1 AS attribution_key,
        COUNT(*) AS lead_count
    FROM leads_educa
    WHERE DATE(data_cadastro) = $1
    GROUP BY var1
    """


# =============================================================================
# RESERVATIONS
# =============================================================================

def get_insert_reservation_query() -> str:
    """
    Params: $1 consultant id (nullable), $2 platform, $3 number, $4 token,
    $5 ip, $6 user agent, $7 issued at, $8 expires at.
    """
    return f"""
    INSERT INTO redirect_logs
        (consultor_id, plataforma, numero, status, token,
         ip_origem, user_agent, created_at, expira_em)
    VALUES ($1, $2, $3, '{ReservationStatus.ISSUED.value}', $4, $5, $6, $7, $8)
    RETURNING id
    """


def get_confirm_reservation_query() -> str:
    """
    Single conditional transition issued -> confirmed.

    Matches only a token that is still issued, unexpired, for the same
    platform, and whose stored number (when present) equals the one the
    caller presents. Zero rows returned means the confirmation failed.

    Params: $1 token, $2 platform, $3 number, $4 now, $5 lead payload (JSON text).
    """
    return f"""
    UPDATE redirect_logs
    SET status = '{ReservationStatus.CONFIRMED.value}',
        confirmado_em = $4,
        dados_lead = $5
    WHERE token = $1
      AND plataforma = $2
      AND status = '{ReservationStatus.ISSUED.value}'
      AND expira_em > $4
      AND (numero IS NULL OR numero = $3)
    RETURNING id, consultor_id, numero
    """


def get_reservation_by_token_query() -> str:
    """
    Params: $1 token.
    """
    return f"""
    SELECT {RESERVATION_COLUMNS}
    FROM redirect_logs
    WHERE token = $1
    ORDER BY created_at DESC
    LIMIT 1
    """


def get_confirmed_count_for_day_query() -> str:
    """
    Confirmed redirects for a platform on one calendar day.

    created_at holds UTC; it is shifted to the business timezone before the
    date is taken.

    Params: $1 platform tag, $2 date, $3 IANA timezone name.
    """
    return f"""
    SELECT COUNT(*) AS redirects_hoje
    FROM redirect_logs
    WHERE plataforma = $1
      AND status = '{ReservationStatus.CONFIRMED.value}'
      AND DATE((created_at AT TIME ZONE 'UTC') AT TIME ZONE $3) = $2
    """
