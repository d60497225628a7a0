from lotes_app.data import seed
from lotes_app.repositories import (
    AuditRepository,
    LotRepository,
    PaymentRepository,
)
from lotes_app.repositories.base import next_sequential_id
from lotes_app.repositories.interfaces import (
    IAuditRepository,
    ICommissionRepository,
    IDictRepository,
    IListRepository,
    ILotRepository,
    IPaymentRepository,
    IProjectRepository,
    IUserRepository,
)


def test_repositories_satisfy_interfaces(container):
    assert isinstance(container.user_repo, IUserRepository)
    assert isinstance(container.project_repo, IProjectRepository)
    assert isinstance(container.lot_repo, ILotRepository)
    assert isinstance(container.payment_repo, IPaymentRepository)
    assert isinstance(container.commission_repo, ICommissionRepository)
    assert isinstance(container.audit_repo, IAuditRepository)
    assert isinstance(container.lot_repo, IDictRepository)
    assert isinstance(container.payment_repo, IListRepository)


def test_next_sequential_id():
    assert next_sequential_id('lot', ['lot-001', 'lot-012', 'pay-099']) == 'lot-013'
    assert next_sequential_id('com', []) == 'com-001'


def test_reads_are_snapshots():
    repo = LotRepository(seed.index_by_id(seed.LOTS))
    lot = repo.get_lot('lot-002')
    lot['status'] = 'sold'
    assert repo.get_lot('lot-002')['status'] == 'available'

    everything = repo.get_all()
    everything.clear()
    assert len(repo.list_all()) == 12


def test_reload_restores_seed():
    repo = PaymentRepository(seed.PAYMENTS)
    repo.add_payment({'lot_id': 'lot-002', 'amount': 1, 'type': 'extra',
                      'receipt_number': 'REC-A-B'})
    assert len(repo.get_all()) == 17
    assert repo.receipt_exists('REC-A-B')
    repo.reload()
    assert len(repo.get_all()) == 16
    assert not repo.receipt_exists('REC-A-B')


def test_audit_log_is_newest_first_and_capped():
    repo = AuditRepository([])
    repo.MAX_LOGS = 3
    for n in range(5):
        repo.log('SISTEMA', 'master@lotes.com', f'evento {n}')
    logs = repo.load()
    assert [l['message'] for l in logs] == ['evento 4', 'evento 3', 'evento 2']
    assert repo.search('evento 3')[0]['message'] == 'evento 3'
    assert repo.search(log_type='PAGO') == []


def test_container_reset_restores_seed(container, users):
    container.lot_service.release_lot('lot-005', users['master'])
    container.reset()
    assert container.lot_repo.get_lot('lot-005')['status'] == 'reserved'
