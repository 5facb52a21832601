# pixelmatch/tools/__init__.py
