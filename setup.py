"""Build configuration for Collage Maker.

Usage:
    pip install -e .[test]        # development install
    python setup.py py2app        # macOS only, produces dist/Collage Maker.app
"""
import sys

from setuptools import setup

APP = ['collage_app.py']
MODULES = [
    'collage_app', 'controller', 'views', 'models', 'colors',
    'cropper', 'patterns', 'layout', 'renderer', 'exporter',
]
OPTIONS = {
    'argv_emulation': False,  # must be False for Qt apps
    'plist': {
        'CFBundleName': 'Collage Maker',
        'CFBundleDisplayName': 'Collage Maker',
        'CFBundleIdentifier': 'com.collagemaker.app',
        'CFBundleVersion': '1.0.0',
        'CFBundleShortVersionString': '1.0',
        'LSMinimumSystemVersion': '11.0',
        'NSHighResolutionCapable': True,
        'CFBundleDocumentTypes': [{
            'CFBundleTypeName': 'Image',
            'CFBundleTypeRole': 'Viewer',
            'LSHandlerRank': 'Alternate',
            'LSItemContentTypes': ['public.image'],
        }],
    },
    'packages': ['PySide6', 'PIL'],
    'strip': False,  # avoid "Operation not permitted" on macOS SIP-protected binaries
}

extra = {}
if 'py2app' in sys.argv:
    extra = dict(app=APP, options={'py2app': OPTIONS}, setup_requires=['py2app'])

setup(
    name='collage-maker',
    version='1.0.0',
    description='Compose two or three photos into a decorated collage',
    python_requires='>=3.10',
    py_modules=MODULES,
    install_requires=['Pillow>=10.1', 'PySide6>=6.5'],
    extras_require={'test': ['pytest', 'pytest-qt']},
    entry_points={'gui_scripts': ['collage-maker=collage_app:main']},
    **extra,
)
