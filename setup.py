"""
Packaging for the serial to TCP data bridge.

Run the bridge with `python -m databridge` or the installed `databridge` command.
Run the tests with `pytest src integrate` after installing the `test` extra.
"""

from setuptools import setup, find_packages


setup(
    name='databridge',
    version='0.0.1',
    description='Relays a serial device byte stream to a TCP server over a cellular network.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    package_data={'databridge.config': ['*.cfg']},
    python_requires='>=3.6',
    install_requires=[
        'pyserial',
        'configobj',
        'psutil',
    ],
    extras_require={
        'test': [
            'pytest',
            'PyHamcrest',
            'timeout-decorator',
        ],
    },
    entry_points={
        'console_scripts': [
            'databridge=databridge.__main__:main',
        ],
    },
    zip_safe=False,
)
