from setuptools import setup, find_packages

setup(
    name="required-fields",
    version="0.1.0",
    description="Declarative required-field checks for nested records",
    author="Jude Payne",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        'required_fields': ['local-config.yaml', 'catalogs/*.yaml'],
    },
    include_package_data=True,
    install_requires=[
        'pyyaml>=6.0',
        'jsonschema>=4.17.0',
        'requests>=2.28.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'required-fields-rpc=required_fields.jsonrpc_server:main',
        ],
    },
    python_requires='>=3.9',
)
