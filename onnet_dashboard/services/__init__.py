# onnet_dashboard/services/__init__.py
