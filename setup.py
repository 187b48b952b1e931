from setuptools import setup, find_packages

setup(
    name='share-webhook',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    package_data={'share_webhook': ['templates/*.j2']},
    include_package_data=True,
    python_requires='>=3.9',
    install_requires=[
        'pyyaml',
        'python-dotenv',
        'jinja2',
        'markupsafe',
        'pydantic>=2',
        'click',
        'html2text',
    ],
    extras_require={
        'dev': ['pytest', 'beautifulsoup4'],
        'test': ['pytest', 'beautifulsoup4'],
    },
    entry_points={
        'console_scripts': [
            'share-webhook=share_webhook.cli:main',
        ],
    },
)
