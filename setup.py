"""
Packaging for the ircon device bridge.

Install for development with `pip install -e .[test]` and run the tests with `pytest src`.
"""

from setuptools import setup


setup(
    name='ircon-bridge-py',
    version='0.1.0',
    description='Bridges relational row operations to the line protocol of networked air-conditioner controllers.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['ircon', 'ircon.conduit', 'ircon.config', 'ircon.connector',
              'ircon.protocol', 'ircon.support'],
    package_data={'ircon': ['*.cfg']},
    python_requires='>=3.7',
    install_requires=[
        'configobj>=5.0.6,<5.1',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=2.0',
            'pytest',
            'timeout-decorator',
        ],
    },
    zip_safe=False,
)
