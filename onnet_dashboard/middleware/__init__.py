# onnet_dashboard/middleware/__init__.py
