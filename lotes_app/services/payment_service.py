# ==============================================================================
# SERVICIO DE PAGOS
# ==============================================================================
# Registro de pagos contra lotes, pago en línea simulado, recibos y
# exportación CSV.
#
# - Los pagos SOLO se agregan: no hay edición ni eliminación.
# - Cada pago recibe un número de recibo único REC-<ts base36>-<4 chars>.
# - REGLA DE ORO: si entra dinero → siempre log de PAGO.
# ==============================================================================

import csv
import io
import random
import string
import time
from typing import Any, Dict, List, Optional

from lotes_app.formatters import payment_method_label, payment_type_label
from lotes_app.models import PaymentMethod, PaymentType, UserRole
from lotes_app.services.audit_service import AuditService
from lotes_app.services.permission_service import (
    PermissionDeniedError,
    can_access_lot,
    require_permission,
    scope_records_for_user,
)
from lotes_app.services.statement_service import compute_statement
from lotes_app.services.validation import (
    invalid,
    parse_number,
    require_date,
    require_positive,
    today_iso,
)


BASE36_ALPHABET = string.digits + string.ascii_uppercase

# Métodos aceptados por la pasarela en línea
GATEWAY_METHODS = frozenset([PaymentMethod.CARD.value, PaymentMethod.TRANSFER.value])


def to_base36(number: int) -> str:
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return ''.join(reversed(digits))


def _random_base36(length: int) -> str:
    return ''.join(random.choices(BASE36_ALPHABET, k=length))


def generate_receipt_number() -> str:
    """REC-<timestamp ms en base36>-<4 caracteres base36>, en mayúsculas."""
    return f'REC-{to_base36(int(time.time() * 1000))}-{_random_base36(4)}'


def generate_gateway_reference() -> str:
    """PAY-<timestamp ms>-<9 caracteres base36>."""
    return f'PAY-{int(time.time() * 1000)}-{_random_base36(9)}'


class PaymentService:
    """
    Servicio para gestión de pagos.

    Responsabilidades:
    - Registrar pagos del personal (validación + recibo único)
    - Pago en línea de un cliente sobre sus propios lotes
    - Listas filtradas por rol, recibos y CSV
    - Registrar cada pago en auditoría (REGLA DE ORO)
    """

    VALID_TYPES = frozenset(t.value for t in PaymentType)
    VALID_METHODS = frozenset(m.value for m in PaymentMethod)

    # Intentos máximos para obtener un número de recibo libre
    MAX_RECEIPT_ATTEMPTS = 20

    def __init__(
        self,
        payment_repo,
        lot_repo,
        project_repo,
        user_repo,
        audit_service: AuditService = None,
        gateway_delay: float = 0.0
    ):
        """
        Args:
            gateway_delay: Segundos de procesamiento simulado de la pasarela
        """
        self.payment_repo = payment_repo
        self.lot_repo = lot_repo
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.audit_service = audit_service
        self.gateway_delay = gateway_delay

    # =========================================================================
    # RECIBOS
    # =========================================================================

    def new_receipt_number(self) -> str:
        """
        Genera un número de recibo que no exista todavía.

        Raises:
            RuntimeError: si no se encuentra uno libre tras varios intentos
        """
        for _ in range(self.MAX_RECEIPT_ATTEMPTS):
            receipt = generate_receipt_number()
            if not self.payment_repo.receipt_exists(receipt):
                return receipt
        raise RuntimeError('No se pudo generar un número de recibo único')

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate_payment_data(self, data: Dict[str, Any]) -> Dict[str, str]:
        errors = {}

        lot = self.lot_repo.get_lot(data.get('lot_id')) if data.get('lot_id') else None
        if lot is None:
            errors['lot_id'] = 'Lote no encontrado'

        client_id = data.get('client_id') or (lot or {}).get('client_id')
        client = self.user_repo.get_user(client_id) if client_id else None
        if not client or client.get('role') != UserRole.CLIENTE.value:
            errors['client_id'] = 'Cliente no encontrado'
        elif lot and lot.get('client_id') and lot['client_id'] != client_id:
            errors['client_id'] = 'El cliente no corresponde al lote'

        require_positive(data, 'amount', 'El monto', errors)
        require_date(data, 'date', 'La fecha', errors)

        if data.get('type') not in self.VALID_TYPES:
            errors['type'] = 'Tipo de pago inválido'
        if data.get('method') not in self.VALID_METHODS:
            errors['method'] = 'Método de pago inválido'

        if data.get('payment_number') not in (None, ''):
            number = parse_number(data['payment_number'])
            if number is None or number <= 0 or number != int(number):
                errors['payment_number'] = 'Número de mensualidad inválido'
        return errors

    def _store_payment(self, data: Dict[str, Any], created_by: str, actor_email: str) -> Dict[str, Any]:
        lot = self.lot_repo.get_lot(data['lot_id'])
        record = {
            'lot_id': lot['id'],
            'client_id': data.get('client_id') or lot.get('client_id'),
            'amount': round(parse_number(data['amount']), 2),
            'type': data['type'],
            'date': str(data['date'])[:10],
            'receipt_number': self.new_receipt_number(),
            'method': data['method'],
            'created_by': created_by,
        }
        if data.get('payment_number') not in (None, ''):
            record['payment_number'] = int(parse_number(data['payment_number']))
        if data.get('notes'):
            record['notes'] = str(data['notes']).strip()
        if data.get('reference'):
            record['reference'] = data['reference']

        payment = self.payment_repo.add_payment(record)

        # REGLA DE ORO: Registrar en auditoría
        if self.audit_service:
            self.audit_service.log_payment_received(
                user=actor_email,
                receipt=payment['receipt_number'],
                amount=payment['amount'],
                lot_number=lot.get('number', ''),
                payment_type=payment['type'],
                method=payment['method']
            )
        return payment

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def register_payment(self, data: Dict[str, Any], actor: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra un pago hecho en oficina.

        Args:
            data: {lot_id, client_id?, amount, type, method, date,
                   payment_number?, notes?}
            actor: Usuario del personal que registra

        Returns:
            {'ok': True, 'payment', 'receipt'} o {'ok': False, 'error', 'errors'}

        Raises:
            PermissionDeniedError: el lote es de un proyecto no asignado al comercial
        """
        require_permission(actor['role'], 'can_register_payments')
        lot = self.lot_repo.get_lot(data.get('lot_id')) if data.get('lot_id') else None
        if lot is not None and not can_access_lot(actor, lot):
            raise PermissionDeniedError('can_register_payments', actor['role'])

        errors = self.validate_payment_data(data)
        if errors:
            return invalid(errors, 'Datos de pago inválidos')

        payment = self._store_payment(data, actor['id'], actor['email'])
        return {'ok': True, 'payment': payment, 'receipt': self.build_receipt(payment)}

    def gateway_payment(self, data: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Pago en línea simulado de un cliente sobre uno de sus lotes.

        Args:
            data: {lot_id, amount, method (card|transfer), type?}
            user: Cliente en sesión

        Raises:
            PermissionDeniedError: el lote no pertenece al cliente
        """
        lot = self.lot_repo.get_lot(data.get('lot_id')) if data.get('lot_id') else None
        if lot is None:
            return {'ok': False, 'error': 'Lote no encontrado', 'not_found': True}
        if lot.get('client_id') != user['id']:
            raise PermissionDeniedError('can_view_own_statement', user['role'])

        payload = {
            'lot_id': lot['id'],
            'client_id': user['id'],
            'amount': data.get('amount'),
            'type': data.get('type') or PaymentType.MONTHLY.value,
            'method': data.get('method') or PaymentMethod.CARD.value,
            'date': today_iso(),
            'payment_number': data.get('payment_number'),
            'notes': 'Pago en línea',
        }
        errors = self.validate_payment_data(payload)
        if payload['method'] not in GATEWAY_METHODS:
            errors['method'] = 'La pasarela solo acepta tarjeta o transferencia'
        if errors:
            return invalid(errors, 'Datos de pago inválidos')

        # Procesamiento simulado de la pasarela
        if self.gateway_delay > 0:
            time.sleep(self.gateway_delay)
        payload['reference'] = generate_gateway_reference()

        payment = self._store_payment(payload, user['id'], user['email'])
        return {
            'ok': True,
            'payment': payment,
            'reference': payment['reference'],
            'receipt': self.build_receipt(payment),
        }

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def _enrich(self, payment: Dict[str, Any]) -> Dict[str, Any]:
        lot = self.lot_repo.get_lot(payment.get('lot_id'))
        project = self.project_repo.get_project(lot.get('project_id')) if lot else None
        client = self.user_repo.get_user(payment.get('client_id'))
        result = dict(payment)
        result['lot_number'] = lot['number'] if lot else 'N/A'
        result['project_name'] = project['name'] if project else 'N/A'
        result['client_name'] = client['name'] if client else 'N/A'
        return result

    def _scope(self, user: Dict[str, Any], payments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Cliente: sus pagos. Comercial: pagos de lotes de sus proyectos."""
        lots = self.lot_repo.get_all()
        return scope_records_for_user(
            user, payments,
            project_of=lambda p: (lots.get(p.get('lot_id')) or {}).get('project_id')
        )

    def list_for_user(
        self,
        user: Dict[str, Any],
        lot_id: str = None,
        client_id: str = None,
        payment_type: str = None,
        query: str = ''
    ) -> List[Dict[str, Any]]:
        """
        Pagos visibles para el usuario, del más reciente al más antiguo.

        Un cliente solo recibe sus propios pagos y un comercial los de sus
        proyectos, sin importar los filtros.
        """
        payments = self._scope(user, self.payment_repo.get_all())
        if lot_id:
            payments = [p for p in payments if p.get('lot_id') == lot_id]
        if client_id:
            payments = [p for p in payments if p.get('client_id') == client_id]
        if payment_type:
            payments = [p for p in payments if p.get('type') == payment_type]

        enriched = [self._enrich(p) for p in payments]
        q = (query or '').strip().lower()
        if q:
            enriched = [
                p for p in enriched
                if q in p['receipt_number'].lower()
                or q in p['client_name'].lower()
                or q in p['lot_number'].lower()
            ]
        return sorted(enriched, key=lambda p: p.get('date', ''), reverse=True)

    def build_receipt(self, payment: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recibo de un pago: pago + lote, proyecto y cliente + saldo
        del lote inmediatamente después de este pago.
        """
        enriched = self._enrich(payment)
        lot = self.lot_repo.get_lot(payment['lot_id'])

        balance = None
        if lot and float(lot.get('price', 0) or 0) > 0:
            lot_payments = self.payment_repo.get_by_lot(lot['id'])
            ids = [p['id'] for p in lot_payments]
            upto = lot_payments[:ids.index(payment['id']) + 1] if payment['id'] in ids else lot_payments
            balance = compute_statement(lot, upto)

        return {
            'payment': enriched,
            'receipt_number': payment['receipt_number'],
            'type_label': payment_type_label(payment['type']),
            'method_label': payment_method_label(payment['method']),
            'balance_after': balance,
        }

    def get_receipt(self, payment_id: str, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Raises:
            PermissionDeniedError: el pago está fuera del alcance del usuario
        """
        payment = self.payment_repo.get_payment(payment_id)
        if payment is None:
            return None
        if not self._scope(user, [payment]):
            raise PermissionDeniedError('can_download_pdf', user['role'])
        return self.build_receipt(payment)

    def export_csv(self, user: Dict[str, Any], **filters) -> str:
        """CSV de los pagos visibles para el usuario."""
        si = io.StringIO()
        writer = csv.writer(si)
        writer.writerow([
            'Recibo', 'Fecha', 'Cliente', 'Proyecto', 'Lote',
            'Tipo', 'Método', 'Mensualidad', 'Monto', 'Referencia'
        ])
        for p in self.list_for_user(user, **filters):
            writer.writerow([
                p['receipt_number'], p['date'], p['client_name'], p['project_name'],
                p['lot_number'], payment_type_label(p['type']), payment_method_label(p['method']),
                p.get('payment_number', ''), f"{p['amount']:.2f}", p.get('reference', '')
            ])
        return si.getvalue()
