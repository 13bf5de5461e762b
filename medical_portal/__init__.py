"""
Backend del portale web dello studio medico.

Struttura:
- settings.py  : configurazione da variabili d'ambiente (.env) e logging
- db.py        : engine e sessioni SQLAlchemy
- models.py    : modelli ORM (medici, servizi, appuntamenti, blog, testimonianze)
- errors.py    : tassonomia degli errori di dominio
- access.py    : regole di autorizzazione (pubblico vs staff)
- services.py  : entity store (CRUD, filtri, set-null sulle cancellazioni)
- lifecycle.py : prenotazione e macchina a stati degli appuntamenti
- public.py    : letture filtrate per i visitatori anonimi
- portal.py    : punto di ingresso unico usato da API e CLI
- seed.py      : dati iniziali (medici, servizi, articoli, testimonianze)
- cli.py       : comandi operatore
"""
