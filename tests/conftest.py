import base64
import json
import time
from datetime import date

import pytest

from onnet_dashboard import create_app
from onnet_dashboard.models import (
    Customer, Employee, Expense, JobRole, MonthlyStatus, Payment, PaymentMethod,
    Plan, TvCustomer, TvDevice, TvPlan, TvStatus
)
from onnet_dashboard.services.api_client import ApiError

TODAY = date(2025, 6, 20)

# Modules that captured today_local at import time
TODAY_PATCH_TARGETS = [
    'onnet_dashboard.routes.customers',
    'onnet_dashboard.routes.payments',
    'onnet_dashboard.routes.balances',
    'onnet_dashboard.routes.quotes',
    'onnet_dashboard.routes.iptv',
    'onnet_dashboard.services.billing',
    'onnet_dashboard.services.cash_desk',
    'onnet_dashboard.services.customer_service',
]

PASSWORD = 'secret123'


def make_token(exp=None):
    """Unsigned JWT-shaped token; only the exp claim matters to the dashboard"""
    def segment(data):
        raw = json.dumps(data).encode('utf-8')
        return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')

    exp = exp if exp is not None else int(time.time()) + 3600
    return f"{segment({'alg': 'HS256'})}.{segment({'exp': exp})}.signature"


class FakeApiClient:
    """In-memory stand-in for OnNetApiClient, seeded with upstream-shaped records"""

    def __init__(self):
        self.calls = []
        self.users = {
            'admin': {'id': 1, 'username': 'admin', 'rol': 'admin', 'nombre': 'Luis', 'apellido': 'Mejía'},
            'caja': {'id': 2, 'username': 'caja', 'rol': 'cajero', 'nombre': 'Rosa', 'apellido': 'Paz'},
            'tecnico': {'id': 3, 'username': 'tecnico', 'rol': 'tecnico', 'nombre': 'Mario', 'apellido': 'Cruz'},
        }
        self.plans = {
            1: {'id': 1, 'nombre': 'Básico 10 Mbps', 'precio_mensual': '500.00', 'descripcion': 'Residencial'},
            2: {'id': 2, 'nombre': 'Avanzado 20 Mbps', 'precio_mensual': '800.00', 'descripcion': ''},
        }
        self.customers = {
            1: {
                'id': 1, 'nombre': 'Ana López', 'telefono': '9999-1111', 'direccion': 'Col. Kennedy',
                'coordenadas': '14.0723,-87.1921', 'plan_id': 1, 'dia_pago': 15, 'estado_id': 1,
                'fecha_instalacion': '2024-01-10', 'ip': '10.0.0.11', 'vineta': 'K-01',
            },
            2: {
                'id': 2, 'nombre': 'Carlos Pérez', 'telefono': '9999-2222', 'direccion': 'Res. Centro América',
                'plan_id': 2, 'dia_pago': 30, 'estado_id': 3, 'fecha_instalacion': '2025-03-05',
            },
            3: {
                'id': 3, 'nombre': 'María Díaz', 'telefono': '9999-3333', 'direccion': 'Col. Palmira',
                'plan_id': 1, 'dia_pago': 30, 'estado_id': 2,
            },
        }
        self.statuses = {}
        self._next_status_id = 500
        for month in range(1, 13):
            self._add_status(1, month, 2025, 'Pagado' if month <= 5 else 'Pendiente')
            self._add_status(2, month, 2025, 'Pendiente')

        self.payment_methods = [{'id': 1, 'descripcion': 'Efectivo'}, {'id': 2, 'descripcion': 'Transferencia'}]
        self.payments = [
            {'id': 1, 'cliente_id': 1, 'monto': '500.00', 'fecha_pago': '2025-06-02T15:00:00.000Z',
             'metodo_id': 1, 'metodo_pago_desc': 'Efectivo', 'mes_aplicado': 5, 'anio_aplicado': 2025},
            {'id': 2, 'cliente_id': 2, 'monto': '800.00', 'fecha_pago': '2025-06-01T03:00:00.000Z',
             'metodo_id': 2, 'metodo_pago_desc': 'Transferencia', 'referencia': 'TRX-1'},
            {'id': 3, 'cliente_id': 1, 'monto': '500.00', 'fecha_pago': '2025-04-10',
             'metodo_id': 1, 'metodo_pago_desc': 'Efectivo'},
        ]
        self.expenses = {
            1: {'id': 1, 'descripcion': 'Combustible', 'monto': '300.00', 'fecha': '2025-06-10'},
            2: {'id': 2, 'descripcion': 'Router de repuesto', 'monto': '1200.00', 'fecha': '2025-05-15'},
            3: {'id': 3, 'descripcion': 'Cable UTP', 'monto': '150.50', 'fecha': '2025-06-18T00:00:00.000Z'},
        }
        self.tv_expenses = [
            {'id': 1, 'descripcion': 'Licencia panel IPTV', 'monto': '400.00', 'fecha': '2025-06-05'},
        ]
        self.employees = {
            1: {'id': 1, 'nombre': 'Luis', 'apellido': 'Mejía', 'username': 'admin', 'cargo_id': 1},
            2: {'id': 2, 'nombre': 'Rosa', 'apellido': 'Paz', 'username': 'caja', 'cargo_id': 2},
        }
        self.job_roles = [{'id': 1, 'nombreCargo': 'admin'}, {'id': 2, 'nombreCargo': 'cajero'}]

        self.tv_plans = [{'id': 1, 'nombre': 'TV Básico', 'precio_mensual': '150.00', 'duracion': 1}]
        self.tv_statuses = [
            {'id': 1, 'descripcion': 'Activo'},
            {'id': 2, 'descripcion': 'Inactivo'},
            {'id': 3, 'descripcion': 'Suspendido'},
            {'id': 4, 'descripcion': 'Cancelado'},
        ]
        self.tv_customers = {
            10: {'id': 10, 'nombre': 'Pedro Ramos', 'usuario': 'pramos', 'telefono': '9888-0000',
                 'direccion': 'Barrio Abajo', 'plantv_id': 1, 'estado_id': 1, 'plan_nombre': 'TV Básico',
                 'plan_precio_mensual': '150.00', 'estado_nombre': 'Activo',
                 'fecha_expiracion': '2025-06-25T06:00:00.000Z'},
            11: {'id': 11, 'nombre': 'Lucía Flores', 'usuario': 'lflores', 'telefono': '9888-1111',
                 'plantv_id': 1, 'estado_id': 3, 'fecha_expiracion': '2025-05-01'},
            12: {'id': 12, 'nombre': 'Jorge Castro', 'usuario': 'jcastro', 'plantv_id': 1, 'estado_id': 4,
                 'plan_nombre': 'TV Básico', 'estado_nombre': 'Cancelado', 'fecha_expiracion': '2025-12-31'},
        }
        self.tv_devices = {
            100: {'id': 100, 'cliente_id': 10, 'descripcion': 'TV Sala', 'mac_address': 'AA:BB:CC:00:11:22'},
        }
        self.tv_payments = [
            {'id': 1, 'clienteTv_id': 10, 'monto': '150.00', 'fecha_pago': '2025-06-03',
             'metodo_pago_desc': 'Efectivo'},
            {'id': 2, 'clienteTv_id': 11, 'monto': '150.00', 'fecha_pago': '2025-04-01',
             'metodo_pago_desc': 'Efectivo'},
        ]
        self.tv_monthly = {
            (10, 2025): [{'id': 1000 + m, 'mes': m, 'anio': 2025, 'estado': 'Pendiente'} for m in range(1, 13)],
        }
        self._next_id = 1000

    # --- helpers ---

    def _add_status(self, customer_id, month, year, status):
        self._next_status_id += 1
        self.statuses.setdefault((customer_id, year), []).append({
            'id': self._next_status_id, 'mes': month, 'anio': year, 'estado': status,
        })

    def _new_id(self):
        self._next_id += 1
        return self._next_id

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    @staticmethod
    def _missing(what):
        return ApiError(404, f'{what} no encontrado')

    # --- auth ---

    def login(self, username, password):
        user = self.users.get(username)
        if user is None or password != PASSWORD:
            raise ApiError(401, 'Credenciales inválidas')
        return {'token': make_token(), 'user': dict(user)}

    # --- plans ---

    def list_plans(self):
        return [Plan.from_api(p) for p in self.plans.values()]

    def get_plan(self, plan_id):
        if plan_id not in self.plans:
            raise self._missing('Plan')
        return Plan.from_api(self.plans[plan_id])

    def create_plan(self, data):
        self._record('create_plan', Plan.to_api(data))
        plan_id = self._new_id()
        self.plans[plan_id] = {'id': plan_id, **Plan.to_api(data)}
        return {'id': plan_id}

    def update_plan(self, plan_id, data):
        if plan_id not in self.plans:
            raise self._missing('Plan')
        self.plans[plan_id].update(Plan.to_api(data))
        return {}

    def delete_plan(self, plan_id):
        if self.plans.pop(plan_id, None) is None:
            raise self._missing('Plan')

    # --- customers ---

    def list_customers(self):
        return [Customer.from_api(c) for c in self.customers.values()]

    def get_customer(self, customer_id):
        if customer_id not in self.customers:
            raise self._missing('Cliente')
        return Customer.from_api(self.customers[customer_id])

    def create_customer(self, data):
        payload = Customer.to_api(data)
        self._record('create_customer', payload)
        customer_id = self._new_id()
        self.customers[customer_id] = {'id': customer_id, **payload}
        return dict(self.customers[customer_id])

    def update_customer(self, customer_id, data):
        if customer_id not in self.customers:
            raise self._missing('Cliente')
        payload = Customer.to_api(data)
        self._record('update_customer', customer_id, payload)
        self.customers[customer_id].update(payload)
        return {}

    def delete_customer(self, customer_id):
        if self.customers.pop(customer_id, None) is None:
            raise self._missing('Cliente')

    def get_monthly_statuses(self, customer_id, year):
        return [MonthlyStatus.from_api(s) for s in self.statuses.get((customer_id, year), [])]

    def create_monthly_status(self, customer_id, month, year, status):
        self._record('create_monthly_status', customer_id, month, year, status)
        self._add_status(customer_id, month, year, status)
        return {}

    # --- payments ---

    def list_payment_methods(self):
        return [PaymentMethod.from_api(m) for m in self.payment_methods]

    def list_payments(self):
        return [Payment.from_api(p) for p in self.payments]

    def list_payments_for_month(self, month, year):
        prefix = f'{year}-{month:02d}'
        return [Payment.from_api(p) for p in self.payments if p['fecha_pago'].startswith(prefix)]

    def pending_months(self, customer_id):
        result = []
        for (cid, _year), rows in sorted(self.statuses.items()):
            if cid == customer_id:
                result.extend(MonthlyStatus.from_api(r) for r in rows if r['estado'] != 'Pagado')
        return result

    def _mark_paid(self, customer_id, month, year):
        for row in self.statuses.get((customer_id, year), []):
            if row['mes'] == month:
                row['estado'] = 'Pagado'

    def create_payment(self, customer_id, amount, paid_on, method_id, month, year,
                       reference=None, note=None):
        self._record('create_payment', customer_id, amount, paid_on, method_id, month, year)
        data = {
            'id': self._new_id(), 'cliente_id': customer_id, 'monto': amount, 'fecha_pago': paid_on,
            'metodo_id': method_id, 'referencia': reference, 'observacion': note,
            'mes_aplicado': month, 'anio_aplicado': year,
        }
        self.payments.append(data)
        self._mark_paid(customer_id, month, year)
        return Payment.from_api(data)

    def create_multiple_payments(self, customer_id, total, paid_on, method_id, months,
                                 reference=None, note=None):
        self._record('create_multiple_payments', customer_id, total, paid_on, method_id, months)
        created = []
        for entry in months:
            data = {
                'id': self._new_id(), 'cliente_id': customer_id, 'monto': round(total / len(months), 2),
                'fecha_pago': paid_on, 'metodo_id': method_id, 'referencia': reference,
                'observacion': note, 'mes_aplicado': entry['month'], 'anio_aplicado': entry['year'],
            }
            self.payments.append(data)
            self._mark_paid(customer_id, entry['month'], entry['year'])
            created.append(Payment.from_api(data))
        return created

    # --- expenses ---

    def list_expenses(self, start_date=None, end_date=None):
        self._record('list_expenses', start_date, end_date)
        return [Expense.from_api(e) for e in self.expenses.values()]

    def create_expense(self, data):
        expense_id = self._new_id()
        self.expenses[expense_id] = {'id': expense_id, **Expense.to_api(data)}
        return Expense.from_api(self.expenses[expense_id])

    def update_expense(self, expense_id, data):
        if expense_id not in self.expenses:
            raise self._missing('Gasto')
        self.expenses[expense_id].update(Expense.to_api(data))
        return Expense.from_api(self.expenses[expense_id])

    def delete_expense(self, expense_id):
        if self.expenses.pop(expense_id, None) is None:
            raise self._missing('Gasto')

    def list_tv_expenses(self):
        return [Expense.from_api(e) for e in self.tv_expenses]

    # --- employees ---

    def list_employees(self):
        return [Employee.from_api(e) for e in self.employees.values()]

    def create_employee(self, data):
        payload = Employee.to_api(data)
        if any(e['username'] == payload.get('username') for e in self.employees.values()):
            raise ApiError(409, 'El usuario ya existe')
        self._record('create_employee', payload)
        employee_id = self._new_id()
        self.employees[employee_id] = {'id': employee_id, **payload}
        return {'id': employee_id}

    def update_employee(self, employee_id, data):
        if employee_id not in self.employees:
            raise self._missing('Empleado')
        self.employees[employee_id].update(Employee.to_api(data))
        return {}

    def delete_employee(self, employee_id):
        if self.employees.pop(employee_id, None) is None:
            raise self._missing('Empleado')

    def list_job_roles(self):
        return [JobRole.from_api(r) for r in self.job_roles]

    # --- IPTV ---

    def list_tv_customers(self):
        return [TvCustomer.from_api(c) for c in self.tv_customers.values()]

    def get_tv_customer(self, customer_id):
        if customer_id not in self.tv_customers:
            raise self._missing('Cliente TV')
        return TvCustomer.from_api(self.tv_customers[customer_id])

    def create_tv_customer(self, data):
        payload = TvCustomer.to_api(data)
        self._record('create_tv_customer', payload)
        customer_id = self._new_id()
        self.tv_customers[customer_id] = {'id': customer_id, **payload}
        return {'id': customer_id}

    def update_tv_customer(self, customer_id, data):
        if customer_id not in self.tv_customers:
            raise self._missing('Cliente TV')
        payload = TvCustomer.to_api(data)
        self._record('update_tv_customer', customer_id, payload)
        self.tv_customers[customer_id].update(payload)
        return {}

    def delete_tv_customer(self, customer_id):
        if self.tv_customers.pop(customer_id, None) is None:
            raise self._missing('Cliente TV')

    def list_tv_plans(self):
        return [TvPlan.from_api(p) for p in self.tv_plans]

    def list_tv_statuses(self):
        return [TvStatus.from_api(s) for s in self.tv_statuses]

    def list_tv_devices(self, customer_id):
        return [TvDevice.from_api(d) for d in self.tv_devices.values() if d['cliente_id'] == customer_id]

    def create_tv_device(self, data):
        device_id = self._new_id()
        self.tv_devices[device_id] = {'id': device_id, **TvDevice.to_api(data)}
        return TvDevice.from_api(self.tv_devices[device_id])

    def update_tv_device(self, device_id, data):
        if device_id not in self.tv_devices:
            raise self._missing('Dispositivo')
        self.tv_devices[device_id].update(TvDevice.to_api(data))
        return TvDevice.from_api(self.tv_devices[device_id])

    def delete_tv_device(self, device_id):
        if self.tv_devices.pop(device_id, None) is None:
            raise self._missing('Dispositivo')

    def list_tv_payment_methods(self):
        return [PaymentMethod.from_api(m) for m in self.payment_methods]

    def list_tv_payments(self):
        return [Payment.from_api(p) for p in self.tv_payments]

    def list_tv_payments_for_month(self, month, year):
        prefix = f'{year}-{month:02d}'
        return [Payment.from_api(p) for p in self.tv_payments if p['fecha_pago'].startswith(prefix)]

    def create_tv_payments(self, customer_id, total, paid_on, method_id, months,
                           reference=None, note=None):
        self._record('create_tv_payments', customer_id, total, paid_on, method_id, months, note)
        created = []
        for _entry in months:
            data = {
                'id': self._new_id(), 'clienteTv_id': customer_id,
                'monto': round(total / len(months), 2), 'fecha_pago': paid_on,
                'metodo_id': method_id, 'referencia': reference, 'observacion': note,
            }
            self.tv_payments.append(data)
            created.append(Payment.from_api(data))
        return created

    def get_tv_monthly_statuses(self, customer_id, year):
        return [MonthlyStatus.from_api(s) for s in self.tv_monthly.get((customer_id, year), [])]

    def update_tv_monthly_status(self, status_id, status):
        for rows in self.tv_monthly.values():
            for row in rows:
                if row['id'] == status_id:
                    row['estado'] = status
                    return {}
        raise self._missing('Estado')


@pytest.fixture()
def fake_api():
    return FakeApiClient()


@pytest.fixture()
def app(fake_api):
    app = create_app('testing', api_client=fake_api)
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def today(monkeypatch):
    """Pin the business date used by the routes and services"""
    for target in TODAY_PATCH_TARGETS:
        monkeypatch.setattr(f'{target}.today_local', lambda: TODAY)
    return TODAY


def login(client, username):
    response = client.post('/api/auth/login', json={'username': username, 'password': PASSWORD})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture()
def admin_client(client):
    return login(client, 'admin')


@pytest.fixture()
def cashier_client(client):
    return login(client, 'caja')


@pytest.fixture()
def technician_client(client):
    return login(client, 'tecnico')
