# ==============================================================================
# DATOS INICIALES (MOCK)
# ==============================================================================
# Datos de demostración cargados al crear el contenedor. Se pierden al
# reiniciar el proceso; AppContainer.reset() los restaura.
#
# Credenciales de demo: parte del email antes de "@" + "123"
# (master@lotes.com / master123, admin@lotes.com / admin123, ...)
# ==============================================================================

from typing import Any, Dict, List


USERS = [
    {'id': 'usr-001', 'email': 'master@lotes.com', 'name': 'Carlos Mendoza',
     'role': 'master', 'phone': '555-100-0001'},
    {'id': 'usr-002', 'email': 'admin@lotes.com', 'name': 'Ana García',
     'role': 'admin', 'phone': '555-100-0002'},
    {'id': 'usr-003', 'email': 'ventas@lotes.com', 'name': 'Roberto Sánchez',
     'role': 'comercial', 'phone': '555-100-0003',
     'assigned_projects': ['proj-001', 'proj-002']},
    {'id': 'usr-004', 'email': 'maria@lotes.com', 'name': 'María López',
     'role': 'comercial', 'phone': '555-100-0004',
     'assigned_projects': ['proj-001', 'proj-003']},
    {'id': 'usr-005', 'email': 'cliente1@email.com', 'name': 'Juan Pérez',
     'role': 'cliente', 'phone': '555-200-0001'},
    {'id': 'usr-006', 'email': 'cliente2@email.com', 'name': 'Laura Martínez',
     'role': 'cliente', 'phone': '555-200-0002'},
    {'id': 'usr-007', 'email': 'cliente3@email.com', 'name': 'Pedro Hernández',
     'role': 'cliente', 'phone': '555-200-0003'},
    {'id': 'usr-008', 'email': 'cliente4@email.com', 'name': 'Sofia Ramírez',
     'role': 'cliente', 'phone': '555-200-0004'},
]

PROJECTS = [
    {'id': 'proj-001', 'name': 'Residencial Los Álamos', 'location': 'Zapopan, Jalisco',
     'description': 'Lotes residenciales con áreas verdes y acceso controlado.',
     'price_per_m2': 3500, 'status': 'active', 'commission_rate': 3.0,
     'created_at': '2023-06-01', 'updated_at': '2024-01-15'},
    {'id': 'proj-002', 'name': 'Bosques del Valle', 'location': 'Valle de Bravo, Estado de México',
     'description': 'Lotes campestres rodeados de bosque.',
     'price_per_m2': 2800, 'status': 'active', 'commission_rate': 3.0,
     'created_at': '2023-07-15', 'updated_at': '2024-02-01'},
    {'id': 'proj-003', 'name': 'Mirador de la Sierra', 'location': 'Santiago, Nuevo León',
     'description': 'Lotes con vista a la sierra, primera etapa en preventa.',
     'price_per_m2': 3200, 'status': 'coming_soon', 'commission_rate': 3.5,
     'created_at': '2024-01-10', 'updated_at': '2024-03-01'},
]

LOTS = [
    # Residencial Los Álamos
    {'id': 'lot-001', 'project_id': 'proj-001', 'number': 'A-01', 'block': 'A', 'area': 200,
     'price': 700000, 'status': 'reserved', 'client_id': 'usr-005', 'sales_person_id': 'usr-003',
     'down_payment': 140000, 'monthly_payment': 9333, 'total_months': 60,
     'start_date': '2024-01-15', 'reservation_date': '2024-01-15'},
    {'id': 'lot-002', 'project_id': 'proj-001', 'number': 'A-02', 'block': 'A', 'area': 200,
     'price': 700000, 'status': 'available'},
    {'id': 'lot-003', 'project_id': 'proj-001', 'number': 'A-03', 'block': 'A', 'area': 250,
     'price': 875000, 'status': 'sold', 'client_id': 'usr-006', 'sales_person_id': 'usr-004',
     'down_payment': 175000, 'monthly_payment': 19444, 'total_months': 36,
     'start_date': '2023-10-01', 'reservation_date': '2023-10-01', 'sale_date': '2024-03-01'},
    {'id': 'lot-004', 'project_id': 'proj-001', 'number': 'B-01', 'block': 'B', 'area': 180,
     'price': 630000, 'status': 'available'},

    # Bosques del Valle
    {'id': 'lot-005', 'project_id': 'proj-002', 'number': 'A-01', 'block': 'A', 'area': 300,
     'price': 840000, 'status': 'reserved', 'client_id': 'usr-007', 'sales_person_id': 'usr-003',
     'down_payment': 168000, 'monthly_payment': 56000, 'total_months': 12,
     'start_date': '2024-02-01', 'reservation_date': '2024-02-01'},
    {'id': 'lot-006', 'project_id': 'proj-002', 'number': 'A-02', 'block': 'A', 'area': 300,
     'price': 840000, 'status': 'available'},
    {'id': 'lot-007', 'project_id': 'proj-002', 'number': 'A-03', 'block': 'A', 'area': 320,
     'price': 896000, 'status': 'sold', 'client_id': 'usr-005', 'sales_person_id': 'usr-003',
     'down_payment': 179200, 'monthly_payment': 29867, 'total_months': 24,
     'start_date': '2023-08-01', 'reservation_date': '2023-08-01', 'sale_date': '2023-12-15'},
    {'id': 'lot-008', 'project_id': 'proj-002', 'number': 'B-01', 'block': 'B', 'area': 250,
     'price': 700000, 'status': 'available'},

    # Mirador de la Sierra
    {'id': 'lot-009', 'project_id': 'proj-003', 'number': 'A-01', 'block': 'A', 'area': 220,
     'price': 704000, 'status': 'reserved', 'client_id': 'usr-008', 'sales_person_id': 'usr-004',
     'down_payment': 140800, 'monthly_payment': 23467, 'total_months': 24,
     'start_date': '2024-03-01', 'reservation_date': '2024-03-01'},
    {'id': 'lot-010', 'project_id': 'proj-003', 'number': 'A-02', 'block': 'A', 'area': 220,
     'price': 704000, 'status': 'available'},
    {'id': 'lot-011', 'project_id': 'proj-003', 'number': 'A-03', 'block': 'A', 'area': 240,
     'price': 768000, 'status': 'available'},
    {'id': 'lot-012', 'project_id': 'proj-003', 'number': 'B-01', 'block': 'B', 'area': 260,
     'price': 832000, 'status': 'available'},
]

PAYMENTS = [
    # lot-001: 700000 con enganche de 140000 y dos mensualidades de 9333
    {'id': 'pay-001', 'lot_id': 'lot-001', 'client_id': 'usr-005', 'amount': 140000,
     'type': 'down_payment', 'date': '2024-01-15', 'receipt_number': 'REC-LRFD2K1C-A7Q2',
     'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-002', 'lot_id': 'lot-001', 'client_id': 'usr-005', 'amount': 9333,
     'type': 'monthly', 'payment_number': 1, 'date': '2024-02-15',
     'receipt_number': 'REC-LSM9X0QE-K3T8', 'method': 'cash', 'created_by': 'usr-003'},
    {'id': 'pay-003', 'lot_id': 'lot-001', 'client_id': 'usr-005', 'amount': 9333,
     'type': 'monthly', 'payment_number': 2, 'date': '2024-03-15',
     'receipt_number': 'REC-LTSAB4H2-M9W1', 'method': 'transfer', 'created_by': 'usr-002'},

    # lot-003
    {'id': 'pay-004', 'lot_id': 'lot-003', 'client_id': 'usr-006', 'amount': 175000,
     'type': 'down_payment', 'date': '2023-10-01', 'receipt_number': 'REC-LN7C1ZQ8-B2D4',
     'method': 'check', 'created_by': 'usr-002'},
    {'id': 'pay-005', 'lot_id': 'lot-003', 'client_id': 'usr-006', 'amount': 19444,
     'type': 'monthly', 'payment_number': 1, 'date': '2023-11-01',
     'receipt_number': 'REC-LOFG5T2M-C6E1', 'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-006', 'lot_id': 'lot-003', 'client_id': 'usr-006', 'amount': 19444,
     'type': 'monthly', 'payment_number': 2, 'date': '2023-12-01',
     'receipt_number': 'REC-LPM3K8VA-D5F7', 'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-007', 'lot_id': 'lot-003', 'client_id': 'usr-006', 'amount': 19444,
     'type': 'monthly', 'payment_number': 3, 'date': '2024-01-01',
     'receipt_number': 'REC-LQUE0C9P-G8H3', 'method': 'card', 'created_by': 'usr-004'},
    {'id': 'pay-008', 'lot_id': 'lot-003', 'client_id': 'usr-006', 'amount': 19444,
     'type': 'monthly', 'payment_number': 4, 'date': '2024-02-01',
     'receipt_number': 'REC-LS1N7W4R-J2K6', 'method': 'transfer', 'created_by': 'usr-002'},

    # lot-005
    {'id': 'pay-009', 'lot_id': 'lot-005', 'client_id': 'usr-007', 'amount': 168000,
     'type': 'down_payment', 'date': '2024-02-01', 'receipt_number': 'REC-LS1P2Q7X-L4M9',
     'method': 'transfer', 'created_by': 'usr-003'},
    {'id': 'pay-010', 'lot_id': 'lot-005', 'client_id': 'usr-007', 'amount': 56000,
     'type': 'monthly', 'payment_number': 1, 'date': '2024-03-01',
     'receipt_number': 'REC-LT7Y9D3B-N1P5', 'method': 'cash', 'created_by': 'usr-003'},

    # lot-007
    {'id': 'pay-011', 'lot_id': 'lot-007', 'client_id': 'usr-005', 'amount': 179200,
     'type': 'down_payment', 'date': '2023-08-01', 'receipt_number': 'REC-LKS4M2N6-Q3R8',
     'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-012', 'lot_id': 'lot-007', 'client_id': 'usr-005', 'amount': 29867,
     'type': 'monthly', 'payment_number': 1, 'date': '2023-09-01',
     'receipt_number': 'REC-LLZ8T1V5-S6T2', 'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-013', 'lot_id': 'lot-007', 'client_id': 'usr-005', 'amount': 29867,
     'type': 'monthly', 'payment_number': 2, 'date': '2023-10-01',
     'receipt_number': 'REC-LN7D6F0W-U9V4', 'method': 'card', 'created_by': 'usr-003'},
    {'id': 'pay-014', 'lot_id': 'lot-007', 'client_id': 'usr-005', 'amount': 29867,
     'type': 'monthly', 'payment_number': 3, 'date': '2023-11-01',
     'receipt_number': 'REC-LOFH2J7Y-W1X3', 'method': 'transfer', 'created_by': 'usr-002'},
    {'id': 'pay-015', 'lot_id': 'lot-007', 'client_id': 'usr-005', 'amount': 50000,
     'type': 'extra', 'date': '2024-01-10', 'receipt_number': 'REC-LR6K3L9Z-Y5Z7',
     'method': 'transfer', 'created_by': 'usr-002', 'notes': 'Abono a capital'},

    # lot-009
    {'id': 'pay-016', 'lot_id': 'lot-009', 'client_id': 'usr-008', 'amount': 140800,
     'type': 'down_payment', 'date': '2024-03-01', 'receipt_number': 'REC-LT7Z0M4C-A3B6',
     'method': 'transfer', 'created_by': 'usr-004'},
]

COMMISSIONS = [
    {'id': 'com-001', 'lot_id': 'lot-001', 'sales_person_id': 'usr-003',
     'client_name': 'Juan Pérez', 'lot_number': 'A-01', 'project_name': 'Residencial Los Álamos',
     'sale_amount': 700000, 'commission_rate': 3.0, 'commission_amount': 21000,
     'status': 'approved', 'trigger': 'reservation', 'created_at': '2024-01-15T10:00:00',
     'approved_by': 'usr-001', 'approved_at': '2024-01-20T12:00:00'},
    {'id': 'com-002', 'lot_id': 'lot-003', 'sales_person_id': 'usr-004',
     'client_name': 'Laura Martínez', 'lot_number': 'A-03', 'project_name': 'Residencial Los Álamos',
     'sale_amount': 875000, 'commission_rate': 3.0, 'commission_amount': 26250,
     'status': 'paid', 'trigger': 'reservation', 'created_at': '2023-10-01T09:30:00',
     'approved_by': 'usr-002', 'approved_at': '2023-10-05T11:00:00',
     'paid_by': 'usr-001', 'paid_at': '2023-10-31T17:00:00'},
    {'id': 'com-003', 'lot_id': 'lot-005', 'sales_person_id': 'usr-003',
     'client_name': 'Pedro Hernández', 'lot_number': 'A-01', 'project_name': 'Bosques del Valle',
     'sale_amount': 840000, 'commission_rate': 3.0, 'commission_amount': 25200,
     'status': 'pending', 'trigger': 'reservation', 'created_at': '2024-02-01T13:15:00'},
    {'id': 'com-004', 'lot_id': 'lot-007', 'sales_person_id': 'usr-003',
     'client_name': 'Juan Pérez', 'lot_number': 'A-03', 'project_name': 'Bosques del Valle',
     'sale_amount': 896000, 'commission_rate': 3.0, 'commission_amount': 26880,
     'status': 'paid', 'trigger': 'reservation', 'created_at': '2023-08-01T10:45:00',
     'approved_by': 'usr-001', 'approved_at': '2023-08-03T09:00:00',
     'paid_by': 'usr-001', 'paid_at': '2023-08-31T18:00:00'},
    {'id': 'com-005', 'lot_id': 'lot-009', 'sales_person_id': 'usr-004',
     'client_name': 'Sofia Ramírez', 'lot_number': 'A-01', 'project_name': 'Mirador de la Sierra',
     'sale_amount': 704000, 'commission_rate': 3.5, 'commission_amount': 24640,
     'status': 'pending', 'trigger': 'reservation', 'created_at': '2024-03-01T16:20:00'},
]


def index_by_id(records: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Convierte una lista de registros en {id: registro}."""
    return {record['id']: dict(record) for record in records}
