# agrilink/routes/__init__.py
# Namespaces are imported and mounted by agrilink.create_api()
