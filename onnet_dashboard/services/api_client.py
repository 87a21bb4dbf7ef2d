# onnet_dashboard/services/api_client.py
"""
HTTP client for the ON-NET upstream API.

Customers, plans, payments, monthly statuses, expenses, employees and IPTV
records all live behind that API. This module is the single place that knows
its URLs; responses are turned into the dashboard models before they leave.
"""

import logging

import requests
from flask import current_app

from onnet_dashboard.models import (
    Customer, Employee, Expense, JobRole, MonthlyStatus, Payment, PaymentMethod,
    Plan, TvCustomer, TvDevice, TvPlan, TvStatus
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised when the upstream API fails or answers with an error status"""

    def __init__(self, status_code, message, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload

    def to_dict(self):
        return {
            'error': self.message,
            'code': 'UPSTREAM_ERROR',
            'status_code': self.status_code,
        }


def _as_list(data):
    # Some endpoints wrap collections as {"data": [...]}
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get('data'), list):
        return data['data']
    return []


def _as_object(data):
    if isinstance(data, dict) and isinstance(data.get('data'), dict):
        return data['data']
    return data if isinstance(data, dict) else {}


def _months_payload(months):
    """[{'month', 'year', 'id'?}] -> the upstream [{'mes', 'anio', 'id'?}] shape"""
    result = []
    for month in months:
        entry = {'mes': month['month'], 'anio': month['year']}
        if month.get('id'):
            entry = {'id': month['id'], **entry}
        result.append(entry)
    return result


class OnNetApiClient:
    def __init__(self, base_url, timeout=10, token_provider=None, session=None):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'onnet-dashboard/1.0',
        })

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self):
        headers = {}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def request(self, method, path, params=None, json=None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=json,
                headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Upstream {method} {path} failed: {e}")
            raise ApiError(502, 'The ON-NET API is not reachable right now')

        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        if not response.ok:
            message = None
            if isinstance(payload, dict):
                message = payload.get('message') or payload.get('error')
            message = message or f'Upstream API returned {response.status_code}'
            logger.warning(f"Upstream {method} {path} -> {response.status_code}: {message}")
            raise ApiError(response.status_code, message, payload)

        return payload

    def get(self, path, params=None):
        return self.request('GET', path, params=params)

    def post(self, path, json=None):
        return self.request('POST', path, json=json)

    def put(self, path, json=None):
        return self.request('PUT', path, json=json)

    def delete(self, path):
        return self.request('DELETE', path)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, username, password):
        """Returns the raw {token, user, dashboardRoute} answer"""
        return _as_object(self.post('/api/auth/login', {'username': username, 'password': password}))

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def list_plans(self):
        return [Plan.from_api(p) for p in _as_list(self.get('/api/planes'))]

    def get_plan(self, plan_id):
        return Plan.from_api(_as_object(self.get(f'/api/planes/{plan_id}')))

    def create_plan(self, data):
        return _as_object(self.post('/api/planes', Plan.to_api(data)))

    def update_plan(self, plan_id, data):
        return _as_object(self.put(f'/api/planes/{plan_id}', Plan.to_api(data)))

    def delete_plan(self, plan_id):
        self.delete(f'/api/planes/{plan_id}')

    # ------------------------------------------------------------------
    # Customers and monthly statuses
    # ------------------------------------------------------------------

    def list_customers(self):
        return [Customer.from_api(c) for c in _as_list(self.get('/api/clientes'))]

    def get_customer(self, customer_id):
        return Customer.from_api(_as_object(self.get(f'/api/clientes/{customer_id}')))

    def create_customer(self, data):
        return _as_object(self.post('/api/clientes', Customer.to_api(data)))

    def update_customer(self, customer_id, data):
        return _as_object(self.put(f'/api/clientes/{customer_id}', Customer.to_api(data)))

    def delete_customer(self, customer_id):
        self.delete(f'/api/clientes/{customer_id}')

    def get_monthly_statuses(self, customer_id, year):
        data = self.get(f'/api/estado-mensual/cliente/{customer_id}/anio/{year}')
        return [MonthlyStatus.from_api(s) for s in _as_list(data)]

    def create_monthly_status(self, customer_id, month, year, status):
        return self.post('/api/estado-mensual', {
            'cliente_id': customer_id,
            'mes': month,
            'anio': year,
            'estado': status,
        })

    # ------------------------------------------------------------------
    # Internet payments
    # ------------------------------------------------------------------

    def list_payment_methods(self):
        return [PaymentMethod.from_api(m) for m in _as_list(self.get('/api/pagos/metodos'))]

    def list_payments(self):
        return [Payment.from_api(p) for p in _as_list(self.get('/api/pagos'))]

    def list_payments_for_month(self, month, year):
        return [Payment.from_api(p) for p in _as_list(self.get(f'/api/pagos/mes/{month}/{year}'))]

    def pending_months(self, customer_id):
        data = self.get(f'/api/pagos/meses-pendientes/{customer_id}')
        return [MonthlyStatus.from_api(s) for s in _as_list(data)]

    def create_payment(self, customer_id, amount, paid_on, method_id, month, year,
                       reference=None, note=None):
        data = self.post('/api/pagos', {
            'cliente_id': customer_id,
            'monto': amount,
            'fecha_pago': paid_on,
            'metodo_id': method_id,
            'referencia': reference,
            'observacion': note,
            'mes_aplicado': month,
            'anio_aplicado': year,
        })
        return Payment.from_api(_as_object(data))

    def create_multiple_payments(self, customer_id, total, paid_on, method_id, months,
                                 reference=None, note=None):
        data = self.post('/api/pagos/multiples', {
            'cliente_id': customer_id,
            'monto_total': total,
            'fecha_pago': paid_on,
            'metodo_id': method_id,
            'referencia': reference,
            'observacion': note,
            'meses': _months_payload(months),
        })
        payments = data.get('pagos') if isinstance(data, dict) else None
        return [Payment.from_api(p) for p in payments or []]

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def list_expenses(self, start_date=None, end_date=None):
        params = {}
        if start_date:
            params['startDate'] = f'{start_date}T00:00'
        if end_date:
            params['endDate'] = f'{end_date}T23:59'
        return [Expense.from_api(e) for e in _as_list(self.get('/api/gastos', params=params or None))]

    def create_expense(self, data):
        return Expense.from_api(_as_object(self.post('/api/gastos', Expense.to_api(data))))

    def update_expense(self, expense_id, data):
        return Expense.from_api(_as_object(self.put(f'/api/gastos/{expense_id}', Expense.to_api(data))))

    def delete_expense(self, expense_id):
        self.delete(f'/api/gastos/{expense_id}')

    def list_tv_expenses(self):
        return [Expense.from_api(e) for e in _as_list(self.get('/api/gastos-tv'))]

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    def list_employees(self):
        return [Employee.from_api(e) for e in _as_list(self.get('/api/users'))]

    def create_employee(self, data):
        return _as_object(self.post('/api/users', Employee.to_api(data)))

    def update_employee(self, employee_id, data):
        return _as_object(self.put(f'/api/empleados/{employee_id}', Employee.to_api(data)))

    def delete_employee(self, employee_id):
        self.delete(f'/api/empleados/{employee_id}')

    def list_job_roles(self):
        return [JobRole.from_api(r) for r in _as_list(self.get('/api/cargos'))]

    # ------------------------------------------------------------------
    # IPTV
    # ------------------------------------------------------------------

    def list_tv_customers(self):
        return [TvCustomer.from_api(c) for c in _as_list(self.get('/api/tv/clientes'))]

    def get_tv_customer(self, customer_id):
        return TvCustomer.from_api(_as_object(self.get(f'/api/tv/clientes/{customer_id}')))

    def create_tv_customer(self, data):
        return _as_object(self.post('/api/tv/clientes', TvCustomer.to_api(data)))

    def update_tv_customer(self, customer_id, data):
        return _as_object(self.put(f'/api/tv/clientes/{customer_id}', TvCustomer.to_api(data)))

    def delete_tv_customer(self, customer_id):
        self.delete(f'/api/tv/clientes/{customer_id}')

    def list_tv_plans(self):
        return [TvPlan.from_api(p) for p in _as_list(self.get('/api/tv/planes'))]

    def list_tv_statuses(self):
        return [TvStatus.from_api(s) for s in _as_list(self.get('/api/tv/estados'))]

    def list_tv_devices(self, customer_id):
        data = self.get(f'/api/tv/dispositivos/by-cliente/{customer_id}')
        return [TvDevice.from_api(d) for d in _as_list(data)]

    def create_tv_device(self, data):
        return TvDevice.from_api(_as_object(self.post('/api/tv/dispositivos', TvDevice.to_api(data))))

    def update_tv_device(self, device_id, data):
        return TvDevice.from_api(_as_object(self.put(f'/api/tv/dispositivos/{device_id}', TvDevice.to_api(data))))

    def delete_tv_device(self, device_id):
        self.delete(f'/api/tv/dispositivos/{device_id}')

    def list_tv_payment_methods(self):
        return [PaymentMethod.from_api(m) for m in _as_list(self.get('/api/metodos-pago'))]

    def list_tv_payments(self):
        return [Payment.from_api(p) for p in _as_list(self.get('/api/pagos-tv/pagos-tv'))]

    def list_tv_payments_for_month(self, month, year):
        data = self.get(f'/api/pagos-tv/pagos-tv/mes/{month}/{year}')
        return [Payment.from_api(p) for p in _as_list(data)]

    def create_tv_payments(self, customer_id, total, paid_on, method_id, months,
                           reference=None, note=None):
        data = self.post('/api/pagos-tv/pagos-tv/multiples', {
            'clienteTv_id': customer_id,
            'monto_total': total,
            'fecha_pago': paid_on,
            'observacion': note,
            'referencia': reference,
            'metodo_id': method_id,
            'meses': _months_payload(months),
        })
        payments = data.get('pagos') if isinstance(data, dict) else None
        return [Payment.from_api(p) for p in payments or []]

    def get_tv_monthly_statuses(self, customer_id, year):
        data = self.get(f'/api/estado-mensual-tv/cliente/{customer_id}/anio/{year}')
        return [MonthlyStatus.from_api(s) for s in _as_list(data)]

    def update_tv_monthly_status(self, status_id, status):
        return self.put(f'/api/estado-mensual-tv/{status_id}', {'estado': status})


def get_api_client():
    """The client bound to the current app (replaced by a fake in tests)"""
    return current_app.extensions['onnet_api']
