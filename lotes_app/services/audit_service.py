# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza el registro de auditoría con mensajes humanizados.
#
# REGLA DE ORO: si entra o sale dinero (pago de cliente, pago de comisión)
# → siempre log.
# ==============================================================================

from typing import Any, Dict, List

from lotes_app.formatters import (
    commission_status_label,
    format_currency,
    lot_status_label,
    payment_method_label,
    payment_type_label,
)
from lotes_app.models import AuditType
from lotes_app.repositories.audit_repository import AuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Categorías: PAGO, LOTE, COMISION, PROYECTO, USUARIO, SISTEMA.
    """

    TYPE_PAGO = AuditType.PAGO.value
    TYPE_LOTE = AuditType.LOTE.value
    TYPE_COMISION = AuditType.COMISION.value
    TYPE_PROYECTO = AuditType.PROYECTO.value
    TYPE_USUARIO = AuditType.USUARIO.value
    TYPE_SISTEMA = AuditType.SISTEMA.value

    def __init__(self, audit_repo: AuditRepository):
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento de auditoría genérico.

        Args:
            log_type: Tipo de evento (PAGO, LOTE, COMISION, ...)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (recibo, lote, comisión)
            details: Detalles adicionales
        """
        self.audit_repo.log(log_type, user, message, related_id, details)

    def log_payment_received(
        self,
        user: str,
        receipt: str,
        amount: float,
        lot_number: str,
        payment_type: str,
        method: str
    ) -> None:
        """Registra un pago de cliente (REGLA DE ORO)."""
        message = (
            f"Pago recibido en lote {lot_number} - Monto: {format_currency(amount)} - "
            f"Tipo: {payment_type_label(payment_type)} - Método: {payment_method_label(method)} - Recibo: {receipt}"
        )
        self.log(
            self.TYPE_PAGO,
            user,
            message,
            receipt,
            {'amount': amount, 'type': payment_type, 'method': method}
        )

    def log_lot_status_change(
        self,
        user: str,
        lot_id: str,
        lot_number: str,
        old_status: str,
        new_status: str,
        client_id: str = None
    ) -> None:
        message = f"Lote {lot_number}: {lot_status_label(old_status)} → {lot_status_label(new_status)} por {user}"
        details = {'from': old_status, 'to': new_status}
        if client_id:
            details['client_id'] = client_id
        self.log(self.TYPE_LOTE, user, message, lot_id, details)

    def log_commission_change(
        self,
        user: str,
        commission_id: str,
        old_status: str,
        new_status: str,
        amount: float
    ) -> None:
        """
        Registra una transición de comisión.
        El paso a "paid" es salida de dinero y se registra también como PAGO.
        """
        message = (
            f"Comisión {commission_id}: {commission_status_label(old_status)} → "
            f"{commission_status_label(new_status)} - Monto: {format_currency(amount)}"
        )
        details = {'from': old_status, 'to': new_status, 'amount': amount}
        self.log(self.TYPE_COMISION, user, message, commission_id, details)
        if new_status == 'paid':
            self.log(
                self.TYPE_PAGO,
                user,
                f"Comisión {commission_id} pagada - Monto: {format_currency(amount)}",
                commission_id,
                details
            )

    def log_commission_created(self, commission_id: str, sales_person_id: str, amount: float) -> None:
        self.log(
            self.TYPE_COMISION,
            'sistema',
            f"Comisión {commission_id} generada para {sales_person_id} - Monto: {format_currency(amount)}",
            commission_id,
            {'sales_person_id': sales_person_id, 'amount': amount}
        )

    def log_project_change(self, user: str, project_id: str, action: str, name: str = '') -> None:
        self.log(self.TYPE_PROYECTO, user, f"Proyecto {name or project_id}: {action}", project_id)

    def log_user_change(self, user: str, target_id: str, action: str) -> None:
        self.log(self.TYPE_USUARIO, user, f"Usuario {target_id}: {action}", target_id)

    def log_login(self, user: str) -> None:
        self.log(self.TYPE_SISTEMA, user, f"Inicio de sesión: {user}")

    def log_logout(self, user: str) -> None:
        self.log(self.TYPE_SISTEMA, user, f"Cierre de sesión: {user}")

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_logs(self, query: str = '', log_type: str = None, limit: int = 200) -> List[Dict[str, Any]]:
        """
        Obtiene logs filtrados, el más reciente primero.

        Args:
            query: Texto libre
            log_type: Tipo exacto (opcional)
            limit: Máximo de registros
        """
        return self.audit_repo.search(query, log_type)[:limit]
