# onnet_dashboard/routes/__init__.py
