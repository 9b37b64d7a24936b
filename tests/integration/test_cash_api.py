"""
Integration tests for shifts and cash cuts over HTTP.
"""

import pytest

from taqueria.models import OrderStatus, PaymentMethod, UserPermission


@pytest.fixture
def shift_id(cashier_shift, make_order):
    """Cash 50 + card 30 + cash 20 on a 100.00 float, plus one cancelled order."""
    make_order(cashier_shift, PaymentMethod.CASH, '50.00')
    make_order(cashier_shift, PaymentMethod.CARD, '30.00')
    make_order(cashier_shift, PaymentMethod.CASH, '20.00')
    make_order(cashier_shift, PaymentMethod.CASH, '500.00', status=OrderStatus.CANCELLED)
    return cashier_shift.id


@pytest.fixture
def manager_client(session, client_for, cashier, cashier_shift):
    """The shift owner, also allowed to reconcile cash."""
    cashier.permissions.append(UserPermission(permission='cash_manage'))
    session.commit()
    return client_for(cashier)


class TestShifts:

    def test_open_and_fetch_active_shift(self, cashier_client):
        assert cashier_client.get('/cash/shifts/active').status_code == 404

        response = cashier_client.post('/cash/shifts', json={'initial_cash': '250.00'})
        assert response.status_code == 201
        shift = response.get_json()['shift']
        assert shift['initial_cash'] == '250.00'
        assert shift['is_active'] is True

        active = cashier_client.get('/cash/shifts/active').get_json()['shift']
        assert active['id'] == shift['id']

    def test_second_open_shift_conflicts(self, cashier_client, cashier_shift):
        response = cashier_client.post('/cash/shifts', json={'initial_cash': '100.00'})
        assert response.status_code == 409

    def test_negative_float(self, cashier_client):
        response = cashier_client.post('/cash/shifts', json={'initial_cash': '-5'})
        assert response.status_code == 400

    def test_listing_requires_cash_manage(self, cashier_client, admin_client, cashier_shift):
        assert cashier_client.get('/cash/shifts').status_code == 403
        shifts = admin_client.get('/cash/shifts?active=1').get_json()['shifts']
        assert [s['id'] for s in shifts] == [cashier_shift.id]


class TestCashCuts:

    def test_summary(self, manager_client, shift_id):
        summary = manager_client.get(f'/cash/shifts/{shift_id}/summary').get_json()['summary']
        assert summary['total_cash'] == '70.00'
        assert summary['expected_cash'] == '170.00'
        assert summary['order_count'] == 3

    def test_preview_does_not_store(self, manager_client, shift_id):
        response = manager_client.post(f'/cash/shifts/{shift_id}/cuts/preview', json={'cash_counted': '185.00'})
        assert response.status_code == 200
        reconciliation = response.get_json()['reconciliation']
        assert reconciliation['difference'] == '15.00'
        assert reconciliation['is_notable'] is True
        assert reconciliation['type'] == 'partial'

        cuts = manager_client.get(f'/cash/cuts?shift_id={shift_id}').get_json()['cash_cuts']
        assert cuts == []

    def test_partial_then_final_then_closed(self, manager_client, shift_id):
        response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={'cash_counted': '170.00'})
        assert response.status_code == 201
        assert response.get_json()['cash_cut']['type'] == 'partial'
        assert manager_client.get('/cash/shifts/active').status_code == 200

        response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={
            'cash_counted': '185.00',
            'type': 'final',
            'notes': 'Cambio de turno',
        })
        assert response.status_code == 201
        cut = response.get_json()['cash_cut']
        assert cut['expected_cash'] == '170.00'
        assert cut['difference'] == '15.00'
        assert cut['is_notable'] is True
        assert response.get_json()['reconciliation']['closes_shift'] is True

        assert manager_client.get('/cash/shifts/active').status_code == 404
        for cut_type in ('partial', 'final'):
            response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={
                'cash_counted': '170.00', 'type': cut_type
            })
            assert response.status_code == 409

        cuts = manager_client.get(f'/cash/cuts?shift_id={shift_id}').get_json()['cash_cuts']
        assert [c['type'] for c in cuts] == ['final', 'partial']

    def test_missing_count(self, manager_client, shift_id):
        response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={'type': 'final'})
        assert response.status_code == 400

    def test_invalid_cut_type(self, manager_client, shift_id):
        response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={'cash_counted': '1', 'type': 'z'})
        assert response.status_code == 400

    def test_oversized_count_is_rejected(self, manager_client, shift_id):
        for amount in ('1e30', '100000000.00'):
            response = manager_client.post(f'/cash/shifts/{shift_id}/cuts/preview', json={'cash_counted': amount})
            assert response.status_code == 400
            response = manager_client.post(f'/cash/shifts/{shift_id}/cuts', json={
                'cash_counted': amount, 'type': 'final'
            })
            assert response.status_code == 400
        assert manager_client.get('/cash/shifts/active').status_code == 200

    def test_cashier_without_cash_manage_cannot_reconcile(self, cashier_client, shift_id):
        assert cashier_client.get(f'/cash/shifts/{shift_id}/summary').status_code == 403
        response = cashier_client.post(f'/cash/shifts/{shift_id}/cuts/preview', json={'cash_counted': '170.00'})
        assert response.status_code == 403
        for cut_type in ('partial', 'final'):
            response = cashier_client.post(f'/cash/shifts/{shift_id}/cuts', json={
                'cash_counted': '150.00', 'type': cut_type
            })
            assert response.status_code == 403

        assert cashier_client.get('/cash/shifts/active').get_json()['shift']['is_active'] is True
        assert cashier_client.get(f'/cash/cuts?shift_id={shift_id}').get_json()['cash_cuts'] == []

    def test_other_cashier_cannot_cut(self, client_for, make_user, shift_id):
        other = client_for(make_user('cashier', ['pos_access']))
        response = other.post(f'/cash/shifts/{shift_id}/cuts', json={'cash_counted': '170.00'})
        assert response.status_code == 403
        assert other.get('/cash/cuts').status_code == 403

    def test_manager_can_cut_any_shift(self, admin_client, shift_id):
        response = admin_client.post(f'/cash/shifts/{shift_id}/cuts', json={
            'cash_counted': '165.00', 'type': 'final'
        })
        assert response.status_code == 201
        assert response.get_json()['cash_cut']['difference'] == '-5.00'
        assert len(admin_client.get('/cash/cuts').get_json()['cash_cuts']) == 1

    def test_unknown_shift(self, admin_client):
        response = admin_client.post('/cash/shifts/999/cuts', json={'cash_counted': '0'})
        assert response.status_code == 404
