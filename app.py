import os
from momopay import create_app, celery_app

app = create_app(os.getenv('FLASK_ENV', 'development'))

# celery -A app.celery_app worker


@app.shell_context_processor
def make_shell_context():
    from momopay.models import Country, CollectionStatus
    from momopay.providers import get_collection_client
    from momopay.utils.msisdn import normalize
    return {
        'Country': Country,
        'CollectionStatus': CollectionStatus,
        'client': get_collection_client,
        'normalize': normalize,
    }

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
